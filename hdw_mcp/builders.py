"""Request payload builders, one per tool.

Builders receive an already validated argument bag and return a fresh dict;
the bag itself is never modified. Optional fields are copied only when the
caller supplied a non-``None`` value. The handful of call-site defaults
(``timeout``, ``count``, sort/visibility/scope, profile section flags) are
filled in when absent. ``account_id`` comes from credentials, never from
the caller.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Union

from .identifiers import UrnType, comment_target, tag_scalar

__all__ = ["Builder", "BUILDERS", "to_number"]

Payload = Dict[str, Any]
Builder = Callable[[Mapping[str, Any], Optional[str]], Payload]

DEFAULT_TIMEOUT = 300
DEFAULT_COUNT = 10
GOOGLE_SEARCH_MAX_RESULTS = 20


def to_number(value: Any) -> Union[int, float]:
    """Coerce a number or numeric string, keeping integral values as ``int``.

    >>> to_number("25")
    25
    >>> to_number(2.5)
    2.5
    """
    if isinstance(value, bool):
        raise TypeError("booleans are not numbers")
    if isinstance(value, int):
        return value
    number = float(value)
    return int(number) if number.is_integer() else number


def _get(args: Mapping[str, Any], name: str, default: Any) -> Any:
    value = args.get(name)
    return default if value is None else value


def _base(args: Mapping[str, Any]) -> Payload:
    return {"timeout": to_number(_get(args, "timeout", DEFAULT_TIMEOUT))}


def _count(args: Mapping[str, Any], default: int = DEFAULT_COUNT) -> Union[int, float]:
    return to_number(_get(args, "count", default))


def _copy_present(payload: Payload, args: Mapping[str, Any], names: Iterable[str]) -> Payload:
    for name in names:
        value = args.get(name)
        if value is not None:
            payload[name] = value
    return payload


def _copy_tagged(payload: Payload, args: Mapping[str, Any], tags: Mapping[str, UrnType]) -> Payload:
    for name, urn_type in tags.items():
        value = args.get(name)
        if value is not None:
            payload[name] = tag_scalar(value, urn_type)
    return payload


# -- Search ------------------------------------------------------------------

_PEOPLE_SEARCH_TAGS = {
    "current_company": UrnType.COMPANY,
    "past_company": UrnType.COMPANY,
    "location": UrnType.GEO,
    "industry": UrnType.INDUSTRY,
    "education": UrnType.FSD_COMPANY,
}

_SN_SEARCH_TAGS = {
    "location": UrnType.GEO,
    "education": UrnType.COMPANY,
    "company_locations": UrnType.GEO,
    "current_companies": UrnType.COMPANY,
    "past_companies": UrnType.COMPANY,
    "industry": UrnType.INDUSTRY,
}


def build_search_users(args: Mapping[str, Any], account_id: Optional[str] = None) -> Payload:
    payload = _base(args)
    payload["count"] = _count(args)
    _copy_present(payload, args, (
        "keywords", "first_name", "last_name", "title",
        "company_keywords", "school_keywords",
    ))
    return _copy_tagged(payload, args, _PEOPLE_SEARCH_TAGS)


def build_sn_search_users(args: Mapping[str, Any], account_id: Optional[str] = None) -> Payload:
    payload = {"count": to_number(args["count"])}
    payload.update(_base(args))
    _copy_present(payload, args, (
        "keywords", "first_names", "last_names", "current_titles",
        "languages", "past_titles", "functions", "levels",
        "years_in_the_current_company", "years_in_the_current_position",
        "company_sizes", "company_types",
    ))
    return _copy_tagged(payload, args, _SN_SEARCH_TAGS)


def build_search_posts(args: Mapping[str, Any], account_id: Optional[str] = None) -> Payload:
    payload = {"count": to_number(args["count"])}
    payload.update(_base(args))
    return _copy_present(payload, args, (
        "keywords", "sort", "date_posted", "content_type",
        "mentioned", "authors", "author_industries", "author_title",
    ))


def build_google_search(args: Mapping[str, Any], account_id: Optional[str] = None) -> Payload:
    payload = _base(args)
    payload["query"] = args["query"]
    payload["count"] = min(max(1, _count(args)), GOOGLE_SEARCH_MAX_RESULTS)
    return payload


# -- Profiles ----------------------------------------------------------------

def build_profile(args: Mapping[str, Any], account_id: Optional[str] = None) -> Payload:
    payload = _base(args)
    payload["user"] = args["user"]
    for flag in ("with_experience", "with_education", "with_skills"):
        payload[flag] = bool(_get(args, flag, True))
    return payload


def build_email_user(args: Mapping[str, Any], account_id: Optional[str] = None) -> Payload:
    payload = _base(args)
    payload["email"] = args["email"]
    payload["count"] = _count(args, 5)
    return payload


def _urn_listing(default_count: int, *optional: str) -> Builder:
    """Builder for ``{timeout, urn, count}`` listings with extra optional fields."""

    def build(args: Mapping[str, Any], account_id: Optional[str] = None) -> Payload:
        payload = _base(args)
        payload["urn"] = args["urn"]
        payload["count"] = _count(args, default_count)
        for name in optional:
            if args.get(name) is not None:
                payload[name] = to_number(args[name])
        return payload

    return build


def build_post_comments(args: Mapping[str, Any], account_id: Optional[str] = None) -> Payload:
    payload = _base(args)
    payload["urn"] = args["urn"]
    payload["sort"] = _get(args, "sort", "relevance")
    payload["count"] = _count(args)
    return payload


# -- Companies ---------------------------------------------------------------

def build_google_company(args: Mapping[str, Any], account_id: Optional[str] = None) -> Payload:
    payload = _base(args)
    payload["keywords"] = list(args["keywords"])
    payload["with_urn"] = bool(_get(args, "with_urn", False))
    payload["count_per_keyword"] = to_number(_get(args, "count_per_keyword", 1))
    return payload


def build_company(args: Mapping[str, Any], account_id: Optional[str] = None) -> Payload:
    payload = _base(args)
    payload["company"] = args["company"]
    return payload


def build_company_employees(args: Mapping[str, Any], account_id: Optional[str] = None) -> Payload:
    payload = _base(args)
    payload["companies"] = list(args["companies"])
    payload["count"] = _count(args)
    return _copy_present(payload, args, ("keywords", "first_name", "last_name"))


# -- Account management ------------------------------------------------------

def build_chat_messages(args: Mapping[str, Any], account_id: Optional[str] = None) -> Payload:
    payload = _base(args)
    payload["user"] = args["user"]
    payload["count"] = _count(args, 20)
    _copy_present(payload, args, ("company",))
    payload["account_id"] = account_id
    return payload


def build_send_chat_message(args: Mapping[str, Any], account_id: Optional[str] = None) -> Payload:
    payload = _base(args)
    payload["user"] = args["user"]
    payload["text"] = args["text"]
    _copy_present(payload, args, ("company",))
    payload["account_id"] = account_id
    return payload


def build_send_connection(args: Mapping[str, Any], account_id: Optional[str] = None) -> Payload:
    payload = _base(args)
    payload["user"] = args["user"]
    payload["account_id"] = account_id
    return payload


def build_post_comment(args: Mapping[str, Any], account_id: Optional[str] = None) -> Payload:
    payload = _base(args)
    payload["text"] = args["text"]
    payload["urn"] = comment_target(args["urn"])
    payload["account_id"] = account_id
    return payload


def build_send_post(args: Mapping[str, Any], account_id: Optional[str] = None) -> Payload:
    payload = {
        "text": args["text"],
        "visibility": _get(args, "visibility", "ANYONE"),
        "comment_scope": _get(args, "comment_scope", "ALL"),
    }
    payload.update(_base(args))
    payload["account_id"] = account_id
    return payload


def build_account_listing(args: Mapping[str, Any], account_id: Optional[str] = None) -> Payload:
    """Connections and conversations share one payload shape."""
    payload = _base(args)
    payload["account_id"] = account_id
    if args.get("connected_after") is not None:
        payload["connected_after"] = to_number(args["connected_after"])
    payload["count"] = _count(args, 20)
    return payload


BUILDERS: Dict[str, Builder] = {
    "search_linkedin_users": build_search_users,
    "get_linkedin_profile": build_profile,
    "get_linkedin_email_user": build_email_user,
    "get_linkedin_user_posts": _urn_listing(10),
    "get_linkedin_user_reactions": _urn_listing(10),
    "get_linkedin_user_comments": _urn_listing(10, "commented_after"),
    "get_linkedin_chat_messages": build_chat_messages,
    "send_linkedin_chat_message": build_send_chat_message,
    "send_linkedin_connection": build_send_connection,
    "send_linkedin_post_comment": build_post_comment,
    "send_linkedin_post": build_send_post,
    "get_linkedin_user_connections": build_account_listing,
    "get_linkedin_conversations": build_account_listing,
    "get_linkedin_post_reposts": _urn_listing(50),
    "get_linkedin_post_comments": build_post_comments,
    "get_linkedin_post_reactions": _urn_listing(10),
    "search_linkedin_posts": build_search_posts,
    "get_linkedin_google_company": build_google_company,
    "get_linkedin_company": build_company,
    "get_linkedin_company_employees": build_company_employees,
    "get_linkedin_company_posts": _urn_listing(10),
    "linkedin_sn_search_users": build_sn_search_users,
    "google_search": build_google_search,
}
