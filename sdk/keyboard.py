"""Inline keyboard builder.

Buttons go into the current row; :meth:`InlineKeyboardBuilder.new_row`
starts another one.  A row holds at most eight buttons and further
``add_button`` calls on a full row are ignored.
"""

from __future__ import annotations

import copy
from typing import Dict, List, Optional

from sdk.models import InlineKeyboardMarkup

MAX_BUTTONS_PER_ROW = 8

Button = Dict[str, str]


class InlineKeyboardBuilder:
    """Chainable builder for ``{"inline_keyboard": [[button, ...], ...]}``.

    Example::

        markup = (
            InlineKeyboardBuilder()
            .add_button("Yes", callback_data="vote_yes")
            .new_row()
            .add_button("Docs", url="https://core.telegram.org/bots/api")
            .render()
        )
        await client.send_message(chat_id, "Vote?", reply_markup=markup)
    """

    def __init__(self) -> None:
        self._rows: List[List[Button]] = [[]]

    @property
    def rows(self) -> List[List[Button]]:
        """Current rows, including an empty trailing row if one was started."""
        return copy.deepcopy(self._rows)

    def new_row(self) -> "InlineKeyboardBuilder":
        self._rows.append([])
        return self

    def add_button(self, text: str, callback_data: Optional[str] = None, url: Optional[str] = None) -> "InlineKeyboardBuilder":
        """Append a button to the current row.

        Raises:
            ValueError: Unless exactly one of *callback_data* and *url* is given.
        """
        if (callback_data is None) == (url is None):
            raise ValueError("A button needs exactly one of callback_data or url")

        row = self._rows[-1]
        if len(row) >= MAX_BUTTONS_PER_ROW:
            return self

        button: Button = {"text": text}
        if callback_data is not None:
            button["callback_data"] = callback_data
        else:
            button["url"] = url  # type: ignore[assignment]
        row.append(button)
        return self

    def render(self) -> Dict[str, List[List[Button]]]:
        """Return a request-ready ``reply_markup`` dict, dropping empty rows.

        The result is a copy; later builder calls do not change it.
        """
        return {"inline_keyboard": [copy.deepcopy(row) for row in self._rows if row]}

    def markup(self) -> InlineKeyboardMarkup:
        return InlineKeyboardMarkup.model_validate(self.render())
