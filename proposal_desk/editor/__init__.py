"""Rich text proposal editor - document snapshots, toolbar commands, scoped CSS."""

from proposal_desk.editor.commands import (
    EditorCommand,
    EditorCommandError,
    Selection,
    apply_command,
    available_commands,
)
from proposal_desk.editor.document import EditorDocument
from proposal_desk.editor.scoping import extract_styles, scope_css

__all__ = [
    "EditorCommand",
    "EditorCommandError",
    "EditorDocument",
    "Selection",
    "apply_command",
    "available_commands",
    "extract_styles",
    "scope_css",
]
