"""
Media Container
===============

Presentational wrapper that gives images, videos and embeds a fixed aspect
ratio (or their natural size) and optionally makes the whole box clickable.
"""

import re
from functools import lru_cache
from importlib.resources import files
from pathlib import Path
from typing import Optional, Tuple, Union

from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape
from markupsafe import Markup
from pydantic import BaseModel, Field, PositiveFloat, ValidationError, field_validator

from sitefeed.utils.exceptions import ComponentError, ErrorCode

RATIO_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*[:/x]\s*(\d+(?:\.\d+)?)\s*$")

BASE_CLASS = "media-container"


class MediaContainerProps(BaseModel):
    """Validated options of a media container."""
    aspect_ratio: Optional[Tuple[PositiveFloat, PositiveFloat]] = Field(
        default=None, description="Width/height pair; natural sizing when omitted"
    )
    on_click: Optional[str] = Field(default=None, description="JavaScript run when the container is clicked")
    class_name: Optional[str] = Field(default=None, description="Extra classes for the container")

    @field_validator("aspect_ratio", mode="before")
    @classmethod
    def parse_ratio_string(cls, v):
        """Accept "16:9", "16/9" and "16x9" as well as pairs."""
        if isinstance(v, str):
            match = RATIO_PATTERN.match(v)
            if not match:
                raise ValueError(f"aspect ratio must look like '16:9', got {v!r}")
            return (match.group(1), match.group(2))
        return v

    @field_validator("on_click", "class_name")
    @classmethod
    def blank_to_none(cls, v):
        if v is not None and not v.strip():
            return None
        return v.strip() if v else v

    @property
    def css_ratio(self) -> Optional[str]:
        if self.aspect_ratio is None:
            return None
        width, height = self.aspect_ratio
        return f"{width:g} / {height:g}"


@lru_cache(maxsize=1)
def _environment() -> Environment:
    template_dir = Path(str(files("sitefeed.components").joinpath("templates")))
    return Environment(
        loader=FileSystemLoader(template_dir),
        autoescape=select_autoescape(["html", "jinja2", "css"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def _render(template_name: str, **context) -> Markup:
    try:
        return Markup(_environment().get_template(template_name).render(**context))
    except TemplateError as e:
        raise ComponentError(
            f"Template {template_name} failed to render: {e}",
            component="media_container",
            error_code=ErrorCode.RENDER_TEMPLATE_ERROR,
        ) from e


class MediaContainer:
    """Fixed-aspect-ratio container for arbitrary nested content."""

    def __init__(
        self,
        aspect_ratio: Union[Tuple[float, float], str, None] = None,
        on_click: Optional[str] = None,
        class_name: Optional[str] = None,
    ):
        """
        Args:
            aspect_ratio: ``(width, height)`` or ``"W:H"``; natural sizing if None
            on_click: JavaScript expression wired to the container's click
            class_name: Classes appended to the container's own

        Raises:
            ComponentError: If the options are invalid
        """
        try:
            self.props = MediaContainerProps(
                aspect_ratio=aspect_ratio, on_click=on_click, class_name=class_name
            )
        except ValidationError as e:
            raise ComponentError(
                f"Invalid media container options: {e.errors()[0]['msg']}",
                component="media_container",
            ) from e

    @property
    def css_classes(self) -> str:
        classes = [BASE_CLASS]
        if self.props.aspect_ratio is None:
            classes.append(f"{BASE_CLASS}--natural")
        if self.props.on_click:
            classes.append(f"{BASE_CLASS}--clickable")
        if self.props.class_name:
            classes.append(self.props.class_name)
        return " ".join(classes)

    def render(self, children: Union[str, Markup] = "") -> Markup:
        """Render the container around trusted child markup."""
        return _render(
            "media_container.html.jinja2",
            css_classes=self.css_classes,
            css_ratio=self.props.css_ratio,
            on_click=self.props.on_click,
            children=Markup(children),
        )

    def __html__(self) -> str:
        return str(self.render())


def stylesheet() -> str:
    """CSS that makes nested content fill its container."""
    return str(_render("media_container.css.jinja2", base_class=BASE_CLASS))
