"""
Conversation viewer panels: the conversation list, one conversation's thread with
its detected errors, and the error analytics for that conversation.
"""

from datetime import datetime
from typing import Any
from urllib.parse import quote

from api import proxy
from api.code_maps import error_category, error_subcategory
from api.errors import UpstreamError, ValidationError
from panels.base import BasePanelAdapter

AVATAR_URL = "https://api.dicebear.com/7.x/initials/svg?seed={seed}"


def format_timestamp(value: str) -> str:
    """'2023-07-29T02:56:29' -> 'Jul 29, 2:56 AM'. Unparseable input is returned as is."""
    try:
        dt = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return value
    hour = dt.hour % 12 or 12
    return f"{dt:%b} {dt.day}, {hour}:{dt:%M} {dt:%p}"


def conversation_rows(heads: Any) -> list[dict]:
    """[{"<id>": {user_name, last_message, last_time, ...}}] -> rows, newest first."""
    if not isinstance(heads, list):
        raise UpstreamError("Invalid data format received from API")
    rows = []
    for item in heads:
        if not isinstance(item, dict):
            continue
        for conversation_id, head in item.items():
            if not isinstance(head, dict):
                raise UpstreamError("Invalid data format received from API")
            name = head.get("user_name") or ""
            rows.append(
                {
                    "id": str(conversation_id),
                    "name": name,
                    "message": head.get("last_message") or "",
                    "lastTime": head.get("last_time") or "",
                    "timestamp": format_timestamp(head.get("last_time") or ""),
                    "avatarUrl": AVATAR_URL.format(seed=quote(name)),
                    "isLastMessageFromAgent": bool(head.get("is_last_message_owner_agent")),
                    "email": head.get("user_email") or "",
                }
            )
    rows.sort(key=lambda r: r["lastTime"], reverse=True)
    return rows


class ConversationListAdapter(BasePanelAdapter):
    """Conversations in the date range, filtered by a name search."""

    title = "Conversations"
    kind = "list"

    @property
    def panel_id(self) -> str:
        return "conversation-list"

    def fetch_data(self, filters: dict) -> Any:
        return proxy.conversations(filters.get("from_date"), filters.get("to_date"), filters.get("agent_id"))

    def build_body(self, filters: dict, raw: Any) -> dict:
        rows = conversation_rows(raw)
        query = (filters.get("search") or "").lower()
        if query:
            rows = [r for r in rows if query in r["name"].lower()]
        return {"rows": rows, "activeConversation": filters.get("conversation_id"), "empty": not rows}


class _SingleConversationAdapter(BasePanelAdapter):
    kind = "list"

    def validate(self, filters: dict) -> None:
        if not filters.get("conversation_id"):
            raise ValidationError("Select a conversation to view analysis")


class ConversationThreadAdapter(_SingleConversationAdapter):
    """Messages of the active conversation, each with the error details found in it."""

    title = "Conversation"

    @property
    def panel_id(self) -> str:
        return "conversation-thread"

    def fetch_data(self, filters: dict) -> dict:
        conversation_id = filters["conversation_id"]
        return {
            "messages": proxy.conversation(conversation_id),
            "analysis": proxy.conversation_analysis(conversation_id),
        }

    def build_body(self, filters: dict, raw: dict) -> dict:
        messages = raw["messages"]
        if not isinstance(messages, list) or not all(isinstance(msg, dict) for msg in messages):
            raise UpstreamError("Invalid data format received from API")
        analysis = raw["analysis"]
        out = []
        for index, msg in enumerate(messages):
            match = next(
                (a for a in analysis if a.get("content") == msg.get("content") and a.get("role") == msg.get("role")),
                None,
            )
            out.append(
                {
                    "id": index,
                    "content": msg.get("content") or "",
                    "createdAt": msg.get("created_at") or "",
                    "timestamp": format_timestamp(msg.get("created_at") or ""),
                    "role": msg.get("role"),
                    "isUser": msg.get("role") == "user",
                    "isAgent": msg.get("role") == "admin",
                    "errorDetails": match.get("error_details") if match else None,
                }
            )
        return {"conversationId": filters["conversation_id"], "messages": out, "empty": not out}


def error_categories(analysis: list[dict]) -> list[dict]:
    """
    Group every error detail by main category (Grammatical / Agent Tone / Other) and
    subcategory label, counting occurrences and keeping the offending message.
    Categories are sorted by count, largest first.
    """
    categories: dict[str, dict] = {}
    for piece in analysis:
        for err in piece.get("error_details") or []:
            code = str(err.get("error_code", ""))
            main = categories.setdefault(
                error_category(code),
                {"title": error_category(code), "count": 0, "subcategories": {}},
            )
            sub_title = error_subcategory(code)
            sub = main["subcategories"].setdefault(sub_title, {"title": sub_title, "count": 0, "messages": []})
            main["count"] += 1
            sub["count"] += 1
            sub["messages"].append(
                {
                    "id": str(piece.get("conversation_piece_id", "")),
                    "timestamp": format_timestamp(piece.get("created_at") or ""),
                    "content": piece.get("content") or "",
                    "errorDetails": [err],
                }
            )
    return sorted(categories.values(), key=lambda c: c["count"], reverse=True)


class ConversationAnalyticsAdapter(_SingleConversationAdapter):
    """Error categories detected in the active conversation."""

    title = "Analytics"

    @property
    def panel_id(self) -> str:
        return "conversation-analytics"

    def fetch_data(self, filters: dict) -> list[dict]:
        return proxy.conversation_analysis(filters["conversation_id"])

    def build_body(self, filters: dict, raw: list[dict]) -> dict:
        categories = error_categories(raw)
        return {"categories": categories, "empty": not categories}
