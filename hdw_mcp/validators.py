"""Argument validators for the HDW tool catalogue.

Each tool gets one :class:`Validator`, built from declarative
:class:`FieldSpec` entries. A validator is a predicate (``validator(args)``)
that fails closed, and ``validator.errors(args)`` reports why, as a list of
``{"field": ..., "message": ...}`` entries.

The same field specs drive the JSON Schema published in the tool listing,
so what callers are told and what is enforced cannot drift apart.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

__all__ = ["FieldKind", "FieldSpec", "Validator", "VALIDATORS"]


class FieldKind(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    STRING_OR_ARRAY = "string_or_array"


@dataclass(frozen=True)
class FieldSpec:
    """Declared shape of one input field."""

    name: str
    kind: FieldKind
    description: str = ""
    required: bool = False
    default: Any = None
    enum: Tuple[str, ...] = ()
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    exclusive_minimum: Optional[float] = None
    # At least one marker must occur in the string value
    contains: Tuple[str, ...] = ()

    def check(self, value: Any) -> Optional[str]:
        """Return an error message for ``value`` or ``None`` when it is acceptable."""
        kind = self.kind
        if kind is FieldKind.STRING:
            if not isinstance(value, str):
                return f"{self.name} must be a string"
            if self.required and not value.strip():
                return f"{self.name} must be a non-empty string"
            if self.contains and not any(marker in value for marker in self.contains):
                markers = " or ".join(f"'{m}'" for m in self.contains)
                return f"{self.name} must contain {markers}"
            if self.enum and value not in self.enum:
                return f"{self.name} must be one of {list(self.enum)}"
            return None

        if kind is FieldKind.NUMBER:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                return f"{self.name} must be a number"
            if isinstance(value, float) and not math.isfinite(value):
                return f"{self.name} must be a finite number"
            if self.exclusive_minimum is not None and value <= self.exclusive_minimum:
                return f"{self.name} must be > {self.exclusive_minimum:g}"
            if self.minimum is not None and value < self.minimum:
                return f"{self.name} must be >= {self.minimum:g}"
            if self.maximum is not None and value > self.maximum:
                return f"{self.name} must be <= {self.maximum:g}"
            return None

        if kind is FieldKind.BOOLEAN:
            if not isinstance(value, bool):
                return f"{self.name} must be a boolean"
            return None

        if kind is FieldKind.STRING_OR_ARRAY and isinstance(value, str):
            return None

        if not isinstance(value, list):
            expected = "a string or an array of strings" if kind is FieldKind.STRING_OR_ARRAY else "an array of strings"
            return f"{self.name} must be {expected}"
        if self.required and not value:
            return f"{self.name} must not be empty"
        for item in value:
            if not isinstance(item, str):
                return f"{self.name} must contain only strings"
            if self.enum and item not in self.enum:
                return f"{self.name} contains unsupported value {item!r}"
        return None

    def to_json_schema(self) -> Dict[str, Any]:
        """JSON Schema fragment for the tool listing."""
        schema: Dict[str, Any]
        if self.kind in (FieldKind.ARRAY, FieldKind.STRING_OR_ARRAY):
            items: Dict[str, Any] = {"type": "string"}
            if self.enum:
                items["enum"] = list(self.enum)
            schema = {"type": ["string", "array"] if self.kind is FieldKind.STRING_OR_ARRAY else "array", "items": items}
        else:
            schema = {"type": self.kind.value}
            if self.enum:
                schema["enum"] = list(self.enum)
        if self.description:
            schema["description"] = self.description
        if self.default is not None:
            schema["default"] = self.default
        if self.minimum is not None:
            schema["minimum"] = self.minimum
        if self.exclusive_minimum is not None:
            schema["exclusiveMinimum"] = self.exclusive_minimum
        if self.maximum is not None:
            schema["maximum"] = self.maximum
        return schema


@dataclass(frozen=True)
class Validator:
    """Predicate over an untyped argument bag.

    ``any_of`` lists fields of which at least one must be present and truthy.
    Unknown keys are ignored. ``None`` on an optional field counts as absent.
    """

    fields: Tuple[FieldSpec, ...]
    any_of: Tuple[str, ...] = ()

    def __call__(self, args: Any) -> bool:
        return not self.errors(args)

    def errors(self, args: Any) -> List[Dict[str, str]]:
        if not isinstance(args, Mapping):
            return [{"field": "arguments", "message": "arguments must be an object"}]

        errors: List[Dict[str, str]] = []
        for spec in self.fields:
            value = args.get(spec.name)
            if value is None:
                if spec.required:
                    errors.append({"field": spec.name, "message": f"{spec.name} is required"})
                continue
            message = spec.check(value)
            if message:
                errors.append({"field": spec.name, "message": message})

        if self.any_of and not any(args.get(name) for name in self.any_of):
            errors.append({
                "field": "arguments",
                "message": "at least one of " + ", ".join(self.any_of) + " is required",
            })
        return errors

    @property
    def required(self) -> List[str]:
        return [spec.name for spec in self.fields if spec.required]

    def spec(self, name: str) -> FieldSpec:
        for spec in self.fields:
            if spec.name == name:
                return spec
        raise KeyError(name)

    def input_schema(self) -> Dict[str, Any]:
        """Whole-object JSON Schema for MCP ``inputSchema``."""
        schema: Dict[str, Any] = {
            "type": "object",
            "properties": {spec.name: spec.to_json_schema() for spec in self.fields},
        }
        if self.required:
            schema["required"] = self.required
        return schema


# -- Enumerations ----------------------------------------------------------------

LANGUAGES = (
    "Arabic", "English", "Spanish", "Portuguese", "Chinese",
    "French", "Italian", "Russian", "German", "Dutch",
    "Turkish", "Tagalog", "Polish", "Korean", "Japanese",
    "Malay", "Norwegian", "Danish", "Romanian", "Swedish",
    "Bahasa Indonesia", "Czech",
)

FUNCTIONS = (
    "Accounting", "Administrative", "Arts and Design", "Business", "Development",
    "Community and Social Services", "Consulting", "Education", "Engineering",
    "Entrepreneurship", "Finance", "Healthcare Services", "Human Resources",
    "Information Technology", "Legal", "Marketing", "Media and Communication",
    "Military and Protective Services", "Operations", "Product Management",
    "Program and Project Management", "Purchasing", "Quality Assurance",
    "Research", "Real Estate", "Sales", "Customer Success and Support",
)

LEVELS = (
    "Entry", "Director", "Owner", "CXO", "Vice President",
    "Experienced Manager", "Entry Manager", "Strategic", "Senior", "Trainy",
)

TENURE_RANGES = ("0-1", "1-2", "3-5", "6-10", "10+")

COMPANY_SIZES = (
    "Self-employed", "1-10", "11-50", "51-200", "201-500",
    "501-1,000", "1,001-5,000", "5,001-10,000", "10,001+",
)

COMPANY_TYPES = (
    "Public Company", "Privately Held", "Non Profit",
    "Educational Institution", "Partnership", "Self Employed",
    "Self Owned", "Government Agency",
)

VISIBILITIES = ("ANYONE", "CONNECTIONS_ONLY")
COMMENT_SCOPES = ("ALL", "CONNECTIONS_ONLY", "NONE")
COMMENT_SORTS = ("relevance", "recent")
DATE_POSTED = ("past-month", "past-week", "past-24h")
CONTENT_TYPES = ("videos", "photos", "jobs", "live_videos", "documents")


# -- Shared field specs ----------------------------------------------------------

S, N, B, A, SA = (
    FieldKind.STRING,
    FieldKind.NUMBER,
    FieldKind.BOOLEAN,
    FieldKind.ARRAY,
    FieldKind.STRING_OR_ARRAY,
)

DEFAULT_TIMEOUT = 300

# Search endpoints bound their runtime; single-record calls only need a number.
SEARCH_TIMEOUT = FieldSpec("timeout", N, "Timeout in seconds (20-1500)", default=DEFAULT_TIMEOUT, minimum=20, maximum=1500)
TIMEOUT = FieldSpec("timeout", N, "Timeout in seconds", default=DEFAULT_TIMEOUT)

PROFILE_URN = FieldSpec(
    "urn", S, "User URN (must include prefix, example: fsd_profile:ACoAA...)", required=True
)
ACTIVITY_URN = FieldSpec(
    "urn", S,
    "Post URN, only activity urn type is allowed (example: activity:7234173400267538433)",
    required=True, contains=("activity:",),
)


def _count(description: str, default: int, **kwargs: Any) -> FieldSpec:
    return FieldSpec("count", N, description, default=default, **kwargs)


def _user(description: str) -> FieldSpec:
    return FieldSpec("user", S, description, required=True)


PEOPLE_SEARCH_FILTERS = (
    "keywords", "first_name", "last_name", "title", "company_keywords",
    "school_keywords", "current_company", "past_company", "location",
    "industry", "education",
)


# -- Per-tool validators ---------------------------------------------------------

VALIDATORS: Dict[str, Validator] = {
    "search_linkedin_users": Validator(
        fields=(
            FieldSpec("keywords", S, "Any keyword for searching in the user page."),
            FieldSpec("first_name", S, "Exact first name"),
            FieldSpec("last_name", S, "Exact last name"),
            FieldSpec("title", S, "Exact word in the title"),
            FieldSpec("company_keywords", S, "Exact word in the company name"),
            FieldSpec("school_keywords", S, "Exact word in the school name"),
            FieldSpec("current_company", S, "Company URN or name"),
            FieldSpec("past_company", S, "Past company URN or name"),
            FieldSpec("location", S, "Location name or URN"),
            FieldSpec("industry", S, "Industry URN or name"),
            FieldSpec("education", S, "Education URN or name"),
            _count("Maximum number of results (max 1000)", 10),
            SEARCH_TIMEOUT,
        ),
        any_of=PEOPLE_SEARCH_FILTERS,
    ),
    "get_linkedin_profile": Validator(
        fields=(
            _user("User alias, URL, or URN"),
            FieldSpec("with_experience", B, "Include experience info", default=True),
            FieldSpec("with_education", B, "Include education info", default=True),
            FieldSpec("with_skills", B, "Include skills info", default=True),
            TIMEOUT,
        ),
    ),
    "get_linkedin_email_user": Validator(
        fields=(
            FieldSpec("email", S, "Email address", required=True),
            _count("Max results", 5),
            TIMEOUT,
        ),
    ),
    "get_linkedin_user_posts": Validator(
        fields=(PROFILE_URN, _count("Max posts", 10), TIMEOUT),
    ),
    "get_linkedin_user_reactions": Validator(
        fields=(PROFILE_URN, _count("Max reactions", 10), TIMEOUT),
    ),
    "get_linkedin_user_comments": Validator(
        fields=(
            PROFILE_URN,
            _count("Max comments", 10),
            TIMEOUT,
            FieldSpec("commented_after", N, "Only comments made after this timestamp"),
        ),
    ),
    "get_linkedin_chat_messages": Validator(
        fields=(
            _user("User URN for filtering messages (must include prefix, e.g. fsd_profile:ACoAA...)"),
            FieldSpec("company", S, "Company URN to read messages as, when acting for a company page"),
            _count("Max messages to return", 20),
            TIMEOUT,
        ),
    ),
    "send_linkedin_chat_message": Validator(
        fields=(
            _user("Recipient user URN (must include prefix, e.g. fsd_profile:ACoAA...)"),
            FieldSpec("company", S, "Company URN to send as, when acting for a company page"),
            FieldSpec("text", S, "Message text", required=True),
            TIMEOUT,
        ),
    ),
    "send_linkedin_connection": Validator(
        fields=(
            _user("Recipient user URN (must include prefix, e.g. fsd_profile:ACoAA...)"),
            TIMEOUT,
        ),
    ),
    "send_linkedin_post_comment": Validator(
        fields=(
            FieldSpec("text", S, "Comment text", required=True),
            FieldSpec(
                "urn", S,
                "URN of the activity or comment to comment on "
                "(e.g., 'activity:123' or 'comment:(activity:123,456)')",
                required=True, contains=("activity:", "comment:"),
            ),
            TIMEOUT,
        ),
    ),
    "send_linkedin_post": Validator(
        fields=(
            FieldSpec("text", S, "Post text content", required=True),
            FieldSpec("visibility", S, "Post visibility", default="ANYONE", enum=VISIBILITIES),
            FieldSpec("comment_scope", S, "Who can comment on the post", default="ALL", enum=COMMENT_SCOPES),
            TIMEOUT,
        ),
    ),
    "get_linkedin_user_connections": Validator(
        fields=(
            FieldSpec("connected_after", N, "Filter users that added after the specified date (timestamp)"),
            _count("Max connections to return", 20),
            TIMEOUT,
        ),
    ),
    "get_linkedin_conversations": Validator(
        fields=(
            FieldSpec("connected_after", N, "Filter conversations created after the specified date (timestamp)"),
            _count("Max conversations to return", 20),
            TIMEOUT,
        ),
    ),
    "get_linkedin_post_reposts": Validator(
        fields=(ACTIVITY_URN, _count("Max reposts to return", 50), TIMEOUT),
    ),
    "get_linkedin_post_comments": Validator(
        fields=(
            ACTIVITY_URN,
            FieldSpec("sort", S, "Sort type (relevance or recent)", default="relevance", enum=COMMENT_SORTS),
            _count("Max comments to return", 10),
            TIMEOUT,
        ),
    ),
    "get_linkedin_post_reactions": Validator(
        fields=(ACTIVITY_URN, _count("Max reactions to return", 10), TIMEOUT),
    ),
    "search_linkedin_posts": Validator(
        fields=(
            FieldSpec("keywords", S, "Any keyword for searching in the post"),
            FieldSpec("sort", S, "Sort type", default="relevance", enum=("relevance",)),
            FieldSpec("date_posted", S, "Date posted window", enum=DATE_POSTED),
            FieldSpec("content_type", S, "Post content type", enum=CONTENT_TYPES),
            FieldSpec("mentioned", A, "Mentioned user or company URNs"),
            FieldSpec("authors", A, "Author user URNs"),
            FieldSpec("author_industries", SA, "Author industry URN or name, or array of them"),
            FieldSpec("author_title", S, "Exact words in the author title"),
            _count("Maximum number of results", 10, required=True, exclusive_minimum=0),
            SEARCH_TIMEOUT,
        ),
    ),
    "get_linkedin_google_company": Validator(
        fields=(
            FieldSpec(
                "keywords", A,
                "Company keywords for search. For example, company name or company website",
                required=True,
            ),
            FieldSpec("with_urn", B, "Include URNs in response (increases execution time)", default=False),
            FieldSpec("count_per_keyword", N, "Max results per keyword", default=1, minimum=1, maximum=10),
            TIMEOUT,
        ),
    ),
    "get_linkedin_company": Validator(
        fields=(
            FieldSpec("company", S, "Company Alias or URL or URN (example: 'openai' or 'company:1441')", required=True),
            TIMEOUT,
        ),
    ),
    "get_linkedin_company_employees": Validator(
        fields=(
            FieldSpec("companies", A, "Company URNs (example: ['company:14064608'])", required=True),
            FieldSpec("keywords", S, "Any keyword for searching employees"),
            FieldSpec("first_name", S, "Search for exact first name"),
            FieldSpec("last_name", S, "Search for exact last name"),
            _count("Maximum number of results", 10),
            TIMEOUT,
        ),
    ),
    "get_linkedin_company_posts": Validator(
        fields=(
            FieldSpec("urn", S, "Company URN (example: company:1441)", required=True, contains=("company:",)),
            _count("Max posts to return", 10),
            TIMEOUT,
        ),
    ),
    "linkedin_sn_search_users": Validator(
        fields=(
            FieldSpec("keywords", S, "Any keyword for searching in the user profile. Using this may reduce result count."),
            FieldSpec("first_names", A, "Exact first names to search for"),
            FieldSpec("last_names", A, "Exact last names to search for"),
            FieldSpec("current_titles", A, "Exact words to search in current titles"),
            FieldSpec("location", SA, "Location URN (geo:*) or name, or array of them"),
            FieldSpec("education", SA, "Education URN (company:*) or name, or array of them"),
            FieldSpec("languages", A, "Profile languages", enum=LANGUAGES),
            FieldSpec("past_titles", A, "Exact words to search in past titles"),
            FieldSpec("functions", A, "Job functions", enum=FUNCTIONS),
            FieldSpec("levels", A, "Job seniority levels", enum=LEVELS),
            FieldSpec("years_in_the_current_company", A, "Years in current company ranges", enum=TENURE_RANGES),
            FieldSpec("years_in_the_current_position", A, "Years in current position ranges", enum=TENURE_RANGES),
            FieldSpec("company_sizes", A, "Company size ranges", enum=COMPANY_SIZES),
            FieldSpec("company_types", A, "Company types", enum=COMPANY_TYPES),
            FieldSpec("company_locations", SA, "Company location URN (geo:*) or name, or array of them"),
            FieldSpec("current_companies", SA, "Current company URN (company:*) or name, or array of them"),
            FieldSpec("past_companies", SA, "Past company URN (company:*) or name, or array of them"),
            FieldSpec("industry", SA, "Industry URN (industry:*) or name, or array of them"),
            _count("Maximum number of results (max 2500)", 10, required=True, exclusive_minimum=0, maximum=2500),
            SEARCH_TIMEOUT,
        ),
    ),
    "google_search": Validator(
        fields=(
            FieldSpec("query", S, "Search query. For example: 'python fastapi'", required=True),
            _count("Maximum number of results (from 1 to 20)", 10, exclusive_minimum=0, maximum=20),
            SEARCH_TIMEOUT,
        ),
    ),
}
