"""Message content variants and their JSON representations."""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field, fields
from typing import Any, Callable, Dict, List, Optional, Union

from aigc_history.utils.uuids import validate_uuid

_U32_MAX = 2**32 - 1
_U64_MAX = 2**64 - 1
_SKIP_NONE = {"skip_none": True}


@dataclass
class TextContent:
    """Plain text."""

    text: str


@dataclass
class ImageContent:
    """A single image with optional descriptive attributes."""

    image_url: str
    thumbnail_url: Optional[str] = field(default=None, metadata=_SKIP_NONE)
    width: Optional[int] = field(default=None, metadata=_SKIP_NONE)
    height: Optional[int] = field(default=None, metadata=_SKIP_NONE)
    mime_type: Optional[str] = field(default=None, metadata=_SKIP_NONE)
    size_bytes: Optional[int] = field(default=None, metadata=_SKIP_NONE)


@dataclass
class ToolCallContent:
    """A request to invoke a tool with JSON arguments."""

    tool_name: str
    arguments: Any
    tool_call_id: str


@dataclass
class ToolResultContent:
    """The JSON result of a tool invocation."""

    tool_call_id: str
    result: Any
    success: bool


@dataclass
class ImageBatchItem:
    """One image in a generated batch."""

    image_url: str
    prompt: Optional[str] = field(default=None, metadata=_SKIP_NONE)
    model: Optional[str] = field(default=None, metadata=_SKIP_NONE)


@dataclass
class ImageBatchContent:
    """A batch of generated images."""

    images: List[ImageBatchItem]


@dataclass
class MetadataContent:
    """Conversation metadata carried by a root message."""

    title: str
    description: Optional[str] = field(default=None, metadata=_SKIP_NONE)
    is_public: bool = False
    fork_from_conversation_id: Optional[uuid.UUID] = field(default=None, metadata=_SKIP_NONE)
    fork_from_message_id: Optional[uuid.UUID] = field(default=None, metadata=_SKIP_NONE)


Content = Union[
    TextContent,
    ImageContent,
    ToolCallContent,
    ToolResultContent,
    ImageBatchContent,
    MetadataContent,
]


def _object(value: Any, what: str = "content") -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"invalid type: expected a JSON object for {what}")
    return value


def _required(data: Dict[str, Any], name: str) -> Any:
    if name not in data:
        raise ValueError(f"missing field `{name}`")
    return data[name]


def _string(data: Dict[str, Any], name: str) -> str:
    value = _required(data, name)
    if not isinstance(value, str):
        raise ValueError(f"invalid type for `{name}`: expected a string")
    return value


def _optional_string(data: Dict[str, Any], name: str) -> Optional[str]:
    value = data.get(name)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"invalid type for `{name}`: expected a string")
    return value


def _optional_uint(data: Dict[str, Any], name: str, maximum: int) -> Optional[int]:
    value = data.get(name)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= maximum:
        raise ValueError(
            f"invalid value for `{name}`: expected an integer between 0 and {maximum}"
        )
    return value


def _boolean(data: Dict[str, Any], name: str, default: Optional[bool] = None) -> bool:
    if name not in data:
        if default is None:
            raise ValueError(f"missing field `{name}`")
        return default
    value = data[name]
    if not isinstance(value, bool):
        raise ValueError(f"invalid type for `{name}`: expected a boolean")
    return value


def _optional_uuid(data: Dict[str, Any], name: str) -> Optional[uuid.UUID]:
    value = data.get(name)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"invalid type for `{name}`: expected a UUID string")
    return validate_uuid(value)


def _decode_text(data: Dict[str, Any]) -> TextContent:
    return TextContent(text=_string(data, "text"))


def _decode_image(data: Dict[str, Any]) -> ImageContent:
    return ImageContent(
        image_url=_string(data, "image_url"),
        thumbnail_url=_optional_string(data, "thumbnail_url"),
        width=_optional_uint(data, "width", _U32_MAX),
        height=_optional_uint(data, "height", _U32_MAX),
        mime_type=_optional_string(data, "mime_type"),
        size_bytes=_optional_uint(data, "size_bytes", _U64_MAX),
    )


def _decode_tool_call(data: Dict[str, Any]) -> ToolCallContent:
    return ToolCallContent(
        tool_name=_string(data, "tool_name"),
        arguments=_required(data, "arguments"),
        tool_call_id=_string(data, "tool_call_id"),
    )


def _decode_tool_result(data: Dict[str, Any]) -> ToolResultContent:
    return ToolResultContent(
        tool_call_id=_string(data, "tool_call_id"),
        result=_required(data, "result"),
        success=_boolean(data, "success"),
    )


def _decode_batch_item(data: Dict[str, Any]) -> ImageBatchItem:
    return ImageBatchItem(
        image_url=_string(data, "image_url"),
        prompt=_optional_string(data, "prompt"),
        model=_optional_string(data, "model"),
    )


def _decode_image_batch(data: Dict[str, Any]) -> ImageBatchContent:
    images = _required(data, "images")
    if not isinstance(images, list):
        raise ValueError("invalid type for `images`: expected a list")
    return ImageBatchContent(
        images=[_decode_batch_item(_object(item, "image batch item")) for item in images]
    )


def _decode_metadata(data: Dict[str, Any]) -> MetadataContent:
    return MetadataContent(
        title=_string(data, "title"),
        description=_optional_string(data, "description"),
        is_public=_boolean(data, "is_public", default=False),
        fork_from_conversation_id=_optional_uuid(data, "fork_from_conversation_id"),
        fork_from_message_id=_optional_uuid(data, "fork_from_message_id"),
    )


_KINDS: Dict[str, tuple[type, Callable[[Dict[str, Any]], Any]]] = {
    "text": (TextContent, _decode_text),
    "image": (ImageContent, _decode_image),
    "tool_call": (ToolCallContent, _decode_tool_call),
    "tool_result": (ToolResultContent, _decode_tool_result),
    "image_batch": (ImageBatchContent, _decode_image_batch),
    "metadata": (MetadataContent, _decode_metadata),
}
_NAMES: Dict[type, str] = {cls: name for name, (cls, _) in _KINDS.items()}


def _encode(value: Any) -> Any:
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, list):
        return [_encode(item) for item in value]
    if isinstance(value, ImageBatchItem):
        return _to_dict(value)
    return value


def _to_dict(obj: Any) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        if value is None and f.metadata.get("skip_none"):
            continue
        out[f.name] = _encode(value)
    return out


def content_type_name(content: Content) -> str:
    """Return the storage type name of a content value."""
    try:
        return _NAMES[type(content)]
    except KeyError:
        raise TypeError(f"not a content value: {type(content).__name__}") from None


def content_from_parts(content_type: str, content_data: str) -> Content:
    """Rebuild content from its type name and untagged JSON text."""
    try:
        _, decode = _KINDS[content_type]
    except KeyError:
        raise ValueError(f"Unknown content type: {content_type}") from None
    try:
        return decode(_object(json.loads(content_data)))
    except ValueError as exc:
        raise ValueError(f"Failed to parse {content_type} content: {exc}") from exc


def content_to_json_string(content: Content) -> str:
    """Serialise content to compact untagged JSON text."""
    content_type_name(content)
    return json.dumps(_to_dict(content), separators=(",", ":"), ensure_ascii=False)


def content_to_tagged(content: Content) -> Dict[str, Any]:
    """Return the JSON object form with a leading ``type`` tag."""
    return {"type": content_type_name(content), **_to_dict(content)}


def content_from_tagged(data: Any) -> Content:
    """Parse the JSON object form carrying a ``type`` tag."""
    obj = _object(data)
    tag = _required(obj, "type")
    if not isinstance(tag, str) or tag not in _KINDS:
        expected = ", ".join(f"`{name}`" for name in _KINDS)
        raise ValueError(f"unknown variant `{tag}`, expected one of {expected}")
    _, decode = _KINDS[tag]
    return decode(obj)