"""
Zoho Projects API.

Projects uses the ``portal`` API type: the path is appended to the regional
``projectsapi`` host as-is, e.g.
``https://projectsapi.zoho.in/restapi/portal/{portal_id}/projects/{project_id}/tasks/``.
"""

from typing import Any, Optional

from ..client import ZohoClient
from ..input_request import InputRequest
from ..request import ApiType, Request
from ..validation import validate_ids
from .base import base_request, send

REST_PREFIX = "/restapi"


def _request(input: InputRequest) -> Request:
    return base_request(ApiType.PORTAL, input)


def _project_path(portal_id: str, project_id: str) -> str:
    validate_ids(portal_id=portal_id, project_id=project_id)
    return f"{REST_PREFIX}/portal/{portal_id}/projects/{project_id}"


def _task_path(portal_id: str, project_id: str, task_id: Optional[str] = None) -> str:
    path = f"{_project_path(portal_id, project_id)}/tasks/"
    if task_id is not None:
        validate_ids(task_id=task_id)
        path = f"{path}{task_id}/"
    return path


def _comment_path(portal_id: str, project_id: str, task_id: str,
                  comment_id: Optional[str] = None) -> str:
    path = f"{_task_path(portal_id, project_id, task_id)}comments/"
    if comment_id is not None:
        validate_ids(comment_id=comment_id)
        path = f"{path}{comment_id}/"
    return path


# Tasks

def list_tasks(input: InputRequest, portal_id: str, project_id: str,
               client: Optional[ZohoClient] = None) -> Any:
    request = _request(input).with_method("GET").with_path(_task_path(portal_id, project_id))
    return send(request, input, client)


def get_task(input: InputRequest, portal_id: str, project_id: str, task_id: str,
             client: Optional[ZohoClient] = None) -> Any:
    request = _request(input).with_method("GET").with_path(_task_path(portal_id, project_id, task_id))
    return send(request, input, client)


def create_task(input: InputRequest, portal_id: str, project_id: str,
                client: Optional[ZohoClient] = None) -> Any:
    request = (_request(input)
               .with_method("POST")
               .with_path(_task_path(portal_id, project_id))
               .with_body(input.body))
    return send(request, input, client)


def update_task(input: InputRequest, portal_id: str, project_id: str, task_id: str,
                client: Optional[ZohoClient] = None) -> Any:
    request = (_request(input)
               .with_method("POST")
               .with_path(_task_path(portal_id, project_id, task_id))
               .with_body(input.body))
    return send(request, input, client)


# Comments

def list_comments(input: InputRequest, portal_id: str, project_id: str, task_id: str,
                  client: Optional[ZohoClient] = None) -> Any:
    request = (_request(input)
               .with_method("GET")
               .with_path(_comment_path(portal_id, project_id, task_id)))
    return send(request, input, client)


def add_comment(input: InputRequest, portal_id: str, project_id: str, task_id: str,
                client: Optional[ZohoClient] = None) -> Any:
    request = (_request(input)
               .with_method("POST")
               .with_path(_comment_path(portal_id, project_id, task_id))
               .with_body(input.body))
    return send(request, input, client)


def update_comment(input: InputRequest, portal_id: str, project_id: str, task_id: str,
                   comment_id: str, client: Optional[ZohoClient] = None) -> Any:
    request = (_request(input)
               .with_method("POST")
               .with_path(_comment_path(portal_id, project_id, task_id, comment_id))
               .with_body(input.body))
    return send(request, input, client)


def delete_comment(input: InputRequest, portal_id: str, project_id: str, task_id: str,
                   comment_id: str, client: Optional[ZohoClient] = None) -> Any:
    request = (_request(input)
               .with_method("DELETE")
               .with_path(_comment_path(portal_id, project_id, task_id, comment_id)))
    return send(request, input, client)


# Users

def list_users(input: InputRequest, portal_id: str, project_id: str,
               client: Optional[ZohoClient] = None) -> Any:
    request = (_request(input)
               .with_method("GET")
               .with_path(f"{_project_path(portal_id, project_id)}/users/"))
    return send(request, input, client)
