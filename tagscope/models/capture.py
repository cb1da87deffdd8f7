"""Pydantic models for observed network requests.

Capture itself (driving a browser, intercepting traffic) happens outside this
package; whatever does it hands requests over in this shape.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union
from urllib.parse import urlsplit

from pydantic import BaseModel, Field, field_validator


class CapturedRequest(BaseModel):
    """One network request observed while a page was loading."""

    url: str = Field(description="Request URL")
    method: str = Field(default="GET", description="HTTP method")
    post_data: Optional[Union[str, Dict[str, Any], List[Any]]] = Field(
        default=None,
        description="Request body, raw or already decoded from JSON (if applicable)"
    )
    timestamp: Optional[datetime] = Field(
        default=None,
        description="When the request was issued"
    )
    resource_type: Optional[str] = Field(
        default=None,
        description="Browser resource type (script, xhr, image, ...)"
    )

    @field_validator('url')
    @classmethod
    def validate_url(cls, v):
        """URLs are kept verbatim; only blank values are rejected."""
        if not v or not v.strip():
            raise ValueError("URL must not be empty")
        return v

    @field_validator('method')
    @classmethod
    def normalize_method(cls, v):
        return v.upper()

    @property
    def host(self) -> str:
        """Extract host from URL."""
        try:
            return urlsplit(self.url).netloc
        except ValueError:
            return ""

    @property
    def has_body(self) -> bool:
        return bool(self.post_data)
