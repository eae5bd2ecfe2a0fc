"""Editable proposal document with original / saved / live snapshots."""

import logging
from typing import Any, Callable, Dict, Optional, Set

from proposal_desk.core.config import get_settings
from proposal_desk.editor.commands import (
    EditorCommand,
    Selection,
    apply_command,
    available_commands,
)
from proposal_desk.editor.scoping import extract_styles, scope_css

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[Dict[str, Any]], None]
UnsavedCallback = Callable[[bool], None]


class EditorDocument:
    """
    In-memory rich text document produced by preview generation.

    Three snapshots are kept:
        original: content at construction or the last force_replace, used by reset
        saved: last explicitly saved content
        live: current content

    ``on_change`` receives ``{"html": ..., "json": None}`` after save and
    reset. ``on_unsaved_change`` receives the unsaved flag after every
    mutation. New content from the wizard never overwrites local edits
    implicitly: ``sync`` only records it, ``force_replace`` applies it.
    """

    def __init__(
        self,
        content: str,
        template_styles: Optional[str] = None,
        on_change: Optional[ChangeCallback] = None,
        on_unsaved_change: Optional[UnsavedCallback] = None,
        scope_class: Optional[str] = None,
    ):
        self._original = content
        self._saved = content
        self._live = content
        self._pending: Optional[str] = None
        self.template_styles = template_styles
        self._scope_class = scope_class or get_settings().EDITOR_SCOPE_CLASS
        self.on_change = on_change
        self.on_unsaved_change = on_unsaved_change

    # ===========================================
    # Snapshots
    # ===========================================

    @property
    def original(self) -> str:
        return self._original

    @property
    def saved(self) -> str:
        return self._saved

    @property
    def live(self) -> str:
        return self._live

    @property
    def has_unsaved_changes(self) -> bool:
        return self._live != self._saved

    @property
    def can_reset(self) -> bool:
        """Whether the reset button is enabled."""
        return self._live != self._original

    @property
    def pending_content(self) -> Optional[str]:
        """Content offered through sync() that has not been applied."""
        return self._pending

    @property
    def scoped_styles(self) -> str:
        """Template CSS rewritten to only match inside the editor container."""
        css = self.template_styles
        if css is None:
            css = extract_styles(self._original)
        return scope_css(css, self._scope_class)

    # ===========================================
    # Mutations
    # ===========================================

    def edit(self, html: str) -> None:
        """Replace the live content, as typing in the editor would."""
        self._live = html
        self._notify_unsaved()

    def apply(self, command: EditorCommand, selection: Selection = None, **options: Any) -> str:
        """Run a toolbar command against the live content."""
        self.edit(apply_command(self._live, command, selection, **options))
        return self._live

    def available_commands(self, selection: Selection = None) -> Set[EditorCommand]:
        return available_commands(self._live, selection)

    def save(self) -> Dict[str, Any]:
        """Capture the live content as the saved snapshot."""
        self._saved = self._live
        logger.debug("Editor content saved")
        return self._emit()

    def reset(self) -> Dict[str, Any]:
        """Restore the original snapshot, dropping saves and edits."""
        self._live = self._original
        self._saved = self._original
        logger.debug("Editor content reset to original")
        return self._emit()

    def sync(self, content: str) -> bool:
        """
        Record content supplied by the wizard.

        Returns:
            True when it differs from the saved snapshot; the caller decides
            whether to apply it with force_replace().
        """
        if content == self._saved:
            self._pending = None
            return False

        self._pending = content
        logger.info("Editor received new content; waiting for an explicit replace")
        return True

    def force_replace(self, content: Optional[str] = None) -> None:
        """Discard local edits and start over from new content."""
        if content is None:
            content = self._pending
        if content is None:
            return

        self._original = content
        self._saved = content
        self._live = content
        self._pending = None
        self._notify_unsaved()

    # ===========================================
    # Callbacks
    # ===========================================

    def _emit(self) -> Dict[str, Any]:
        payload = {"html": self._saved, "json": None}
        if self.on_change:
            self.on_change(payload)
        self._notify_unsaved()
        return payload

    def _notify_unsaved(self) -> None:
        if self.on_unsaved_change:
            self.on_unsaved_change(self.has_unsaved_changes)
