from __future__ import annotations

"""
Project letter pages into their display form and back.

Design intent:
- The salutation header ("Dear <recipient>,") exists only on the first page's
  display form; the closing footer ("With love, <sender>") only on the last.
- Stored page text never contains either fragment; names are parameters.
- One template drives both directions so wording changes cannot drift apart.
"""

import re
from dataclasses import dataclass, field

_NAME_TOKEN = "{name}"
_LEADING_BLANK_LINES_RE = re.compile(r"\A(?:[ \t]*\n)+")


def _fragment_regex(fragment_format: str) -> str:
    prefix, _, suffix = fragment_format.partition(_NAME_TOKEN)
    return re.escape(prefix) + r"[^\n]*" + re.escape(suffix)


@dataclass(frozen=True)
class SalutationTemplate:
    header_format: str = "Dear {name},"
    footer_format: str = "With love, {name}"
    separator: str = "\n\n"
    _header_re: re.Pattern[str] = field(init=False, repr=False, compare=False)
    _footer_re: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if _NAME_TOKEN not in self.header_format or _NAME_TOKEN not in self.footer_format:
            raise ValueError("Salutation formats must contain '{name}'.")
        header_re = re.compile(r"\A" + _fragment_regex(self.header_format) + r"[ \t]*(?:\n|\Z)")
        footer_re = re.compile(
            r"(?:\A|" + re.escape(self.separator) + r")" + _fragment_regex(self.footer_format) + r"\Z"
        )
        object.__setattr__(self, "_header_re", header_re)
        object.__setattr__(self, "_footer_re", footer_re)

    def header(self, name: str) -> str:
        return self.header_format.replace(_NAME_TOKEN, name) + self.separator

    def footer(self, name: str) -> str:
        return self.separator + self.footer_format.replace(_NAME_TOKEN, name)

    def strip_header(self, text: str) -> str:
        while True:
            match = self._header_re.match(text)
            if match is None:
                return text
            text = _LEADING_BLANK_LINES_RE.sub("", text[match.end():])

    def strip_footer(self, text: str) -> str:
        while True:
            match = self._footer_re.search(text)
            if match is None:
                return text
            text = text[: match.start()]


DEFAULT_TEMPLATE = SalutationTemplate()


def _clean_name(name: str | None) -> str:
    return (name or "").strip()


def is_first_page(page_index: int) -> bool:
    return page_index == 0


def is_last_page(page_index: int, page_count: int) -> bool:
    return page_index == max(1, page_count) - 1


def to_display(
    raw: str,
    page_index: int,
    page_count: int,
    recipient_name: str | None,
    sender_name: str | None,
    *,
    template: SalutationTemplate = DEFAULT_TEMPLATE,
) -> str:
    text = raw or ""
    recipient = _clean_name(recipient_name)
    sender = _clean_name(sender_name)
    if is_first_page(page_index) and recipient:
        text = template.header(recipient) + text
    if is_last_page(page_index, page_count) and sender:
        text = text + template.footer(sender)
    return text


def to_raw(
    display: str,
    page_index: int,
    page_count: int,
    recipient_name: str | None,
    sender_name: str | None,
    *,
    template: SalutationTemplate = DEFAULT_TEMPLATE,
) -> str:
    """Inverse of :func:`to_display`.

    A fragment is only stripped where the matching name is non-empty, so text
    the user typed in fragment shape survives when no name is set. Fragments
    are matched by shape rather than by the current names, so a page rendered
    before a rename is still cleaned. Repeated fragments are removed
    together. The footer goes first: on a single-page letter the header strip
    collapses leading blank lines, which would otherwise eat the footer's
    separator.
    """
    text = display or ""
    if is_last_page(page_index, page_count) and _clean_name(sender_name):
        text = template.strip_footer(text)
    if is_first_page(page_index) and _clean_name(recipient_name):
        text = template.strip_header(text)
    return text
