"""Prompt styles for the gcops job picker and confirmations.

QUESTIONARY_STYLE_SELECT colours the checkbox list `gcops jobs rerun` shows
when no job ids are given. QUESTIONARY_STYLE_CONFIRM is used for the
submit and cancel confirmations.
"""

from __future__ import annotations

from prompt_toolkit.styles import Style

QUESTIONARY_STYLE_SELECT = Style.from_dict(
    {
        "question": "bold ansibrightblue",
        "answer": "bold ansibrightgreen",
        "pointer": "bold ansibrightgreen",
        "highlighted": "bold ansibrightgreen",
        "selected": "bold ansibrightgreen",
        "checkbox": "ansibrightblack",
        "checkbox-selected": "bold ansibrightgreen",
        "separator": "ansibrightblack",
        "instruction": "ansibrightblack",
        "error": "bold ansired",
        "disabled": "ansibrightblack",
    }
)

# Confirmations guard actions that create or cancel jobs.
QUESTIONARY_STYLE_CONFIRM = Style.from_dict(
    {
        "question": "bold ansiyellow",
        "answer": "bold ansiyellow",
        "pointer": "bold ansiyellow",
        "highlighted": "bold ansiyellow",
        "selected": "bold ansiyellow",
        "separator": "ansibrightblack",
        "instruction": "ansibrightblack",
        "error": "bold ansired",
        "disabled": "ansibrightblack",
    }
)
