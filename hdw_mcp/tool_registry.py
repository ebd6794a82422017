"""HDW tool catalogue and dispatch table.

Public API:
- ToolRegistry.list_tools(): MCP tool definitions (name, description, inputSchema)
- ToolRegistry.get(tool_name): the ToolDescriptor to dispatch, or UnknownToolError

Each descriptor ties one tool name to its validator, request builder,
upstream endpoint and HTTP method. Descriptors are built once at import time
and never change afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, TypedDict

from .builders import BUILDERS, Builder
from .exceptions import UnknownToolError
from .validators import VALIDATORS, Validator

__all__ = ["ToolDescriptor", "ToolDefinition", "ToolRegistry", "CATALOGUE"]


class ToolDefinition(TypedDict):
    name: str
    description: str
    inputSchema: Dict[str, Any]


@dataclass(frozen=True)
class ToolDescriptor:
    """Static description of one tool."""

    name: str
    description: str
    endpoint: str
    method: str
    validator: Validator
    builder: Builder
    # Used in error messages: "<label> API error: ..."
    label: str
    account_scoped: bool = False
    # Field normalized to the fsd_profile: prefix before building
    profile_urn_field: Optional[str] = None

    def definition(self) -> ToolDefinition:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.validator.input_schema(),
        }


# name, endpoint, method, account scoped, profile urn field, label, description
_TABLE: Tuple[Tuple[str, str, str, bool, Optional[str], str, str], ...] = (
    ("search_linkedin_users", "/api/linkedin/search/users", "POST", False, None,
     "LinkedIn search",
     "Search for LinkedIn users with various filters like keywords, name, title, company, location etc."),
    ("get_linkedin_profile", "/api/linkedin/user", "POST", False, None,
     "LinkedIn",
     "Get detailed information about a LinkedIn user profile"),
    ("get_linkedin_email_user", "/api/linkedin/email/user", "POST", False, None,
     "LinkedIn email",
     "Get LinkedIn user details by email"),
    ("get_linkedin_user_posts", "/api/linkedin/user/posts", "POST", False, "urn",
     "LinkedIn user posts",
     "Get LinkedIn posts for a user by URN (must include prefix, example: "
     "fsd_profile:ACoAAEWn01QBWENVMWqyM3BHfa1A-xsvxjdaXsY)"),
    ("get_linkedin_user_reactions", "/api/linkedin/user/reactions", "POST", False, "urn",
     "LinkedIn user reactions",
     "Get LinkedIn reactions for a user by URN (must include prefix, example: fsd_profile:ACoAA...)"),
    ("get_linkedin_user_comments", "/api/linkedin/user/comments", "POST", False, "urn",
     "LinkedIn user comments",
     "Get LinkedIn comments written by a user by URN (must include prefix, example: fsd_profile:ACoAA...)"),
    ("get_linkedin_chat_messages", "/api/linkedin/management/chat/messages", "GET", True, "user",
     "LinkedIn chat messages",
     "Get top chat messages from LinkedIn management API. Account ID is taken from configuration."),
    ("send_linkedin_chat_message", "/api/linkedin/management/chat/message", "POST", True, "user",
     "LinkedIn send chat message",
     "Send a chat message via LinkedIn management API. Account ID is taken from configuration."),
    ("send_linkedin_connection", "/api/linkedin/management/user/connection", "POST", True, "user",
     "LinkedIn connection request",
     "Send a connection invitation to LinkedIn user. Account ID is taken from configuration."),
    ("send_linkedin_post_comment", "/api/linkedin/management/post/comment", "POST", True, None,
     "LinkedIn comment",
     "Create a comment on a LinkedIn post or on another comment. Account ID is taken from configuration."),
    ("send_linkedin_post", "/api/linkedin/management/post", "POST", True, None,
     "LinkedIn post creation",
     "Create a post on LinkedIn. Account ID is taken from configuration."),
    ("get_linkedin_user_connections", "/api/linkedin/management/user/connections", "GET", True, None,
     "LinkedIn user connections",
     "Get list of LinkedIn user connections. Account ID is taken from configuration."),
    ("get_linkedin_conversations", "/api/linkedin/management/conversations", "GET", True, None,
     "LinkedIn conversations",
     "Get list of LinkedIn conversations from the messaging interface. Account ID is taken from configuration."),
    ("get_linkedin_post_reposts", "/api/linkedin/post/reposts", "POST", False, None,
     "LinkedIn post reposts",
     "Get LinkedIn reposts for a post by URN"),
    ("get_linkedin_post_comments", "/api/linkedin/post/comments", "POST", False, None,
     "LinkedIn post comments",
     "Get LinkedIn comments for a post by URN"),
    ("get_linkedin_post_reactions", "/api/linkedin/post/reactions", "POST", False, None,
     "LinkedIn post reactions",
     "Get LinkedIn reactions for a post by URN"),
    ("search_linkedin_posts", "/api/linkedin/search/posts", "POST", False, None,
     "LinkedIn post search",
     "Search for LinkedIn posts with filters like keywords, date posted, content type and authors"),
    ("get_linkedin_google_company", "/api/linkedin/google/company", "POST", False, None,
     "LinkedIn Google company search",
     "Search for LinkedIn companies using Google search. First result is usually the best match."),
    ("get_linkedin_company", "/api/linkedin/company", "POST", False, None,
     "LinkedIn company",
     "Get detailed information about a LinkedIn company"),
    ("get_linkedin_company_employees", "/api/linkedin/company/employees", "POST", False, None,
     "LinkedIn company employees",
     "Get employees of a LinkedIn company"),
    ("get_linkedin_company_posts", "/api/linkedin/company/posts", "POST", False, None,
     "LinkedIn company posts",
     "Get LinkedIn posts published by a company by URN (example: company:1441)"),
    ("linkedin_sn_search_users", "/api/linkedin/sn_search/users", "POST", False, None,
     "LinkedIn Sales Navigator search",
     "Advanced search for LinkedIn users using Sales Navigator filters"),
    ("google_search", "/api/google/search", "POST", False, None,
     "Google search",
     "Search for information using Google search API"),
)


CATALOGUE: Dict[str, ToolDescriptor] = {
    name: ToolDescriptor(
        name=name,
        description=description,
        endpoint=endpoint,
        method=method,
        validator=VALIDATORS[name],
        builder=BUILDERS[name],
        label=label,
        account_scoped=account_scoped,
        profile_urn_field=profile_urn_field,
    )
    for name, endpoint, method, account_scoped, profile_urn_field, label, description in _TABLE
}


class ToolRegistry:
    """Expose MCP tool definitions and dispatch lookups."""

    def __init__(self, catalogue: Optional[Dict[str, ToolDescriptor]] = None) -> None:
        self._tools = dict(catalogue if catalogue is not None else CATALOGUE)

    def __contains__(self, tool_name: object) -> bool:
        return tool_name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def names(self) -> List[str]:
        return list(self._tools)

    def descriptors(self) -> List[ToolDescriptor]:
        return list(self._tools.values())

    def get(self, tool_name: str) -> ToolDescriptor:
        """Look up a tool by name.

        Raises:
            UnknownToolError: If the name is not in the catalogue
        """
        try:
            return self._tools[tool_name]
        except (KeyError, TypeError):
            raise UnknownToolError(str(tool_name)) from None

    def list_tools(self) -> List[ToolDefinition]:
        """Return MCP tool definitions in catalogue order.

        Each definition is freshly built, so callers may mutate it freely.
        """
        return [descriptor.definition() for descriptor in self._tools.values()]

    def summary(self) -> Dict[str, Any]:
        """Compact catalogue overview used by the discovery resource."""
        return {
            "tools": [
                {
                    "name": d.name,
                    "description": d.description,
                    "method": d.method,
                    "endpoint": d.endpoint,
                    "account_scoped": d.account_scoped,
                    "required": d.validator.required,
                }
                for d in self._tools.values()
            ],
            "count": len(self._tools),
        }
