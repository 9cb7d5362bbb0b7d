# -*- coding: utf-8 -*-
"""Textual UI for Aurora Journal.

This file contains ONLY the UI: screens, modals, and the App wrapper.
Everything it does goes through :class:`aurorajournal.logic.Journal`,
which owns the store, the lock engine and the session unlock cache.

Theme switching:
    theme.css defines 4 variants implemented as CSS class scopes
    (`.theme-womb`, `.theme-lavender`, `.theme-earth`, `.theme-night`).
    The app toggles one of these classes based on the saved config.

Password checks are slow on purpose (argon2). They run as workers owned by
the entry screen, so leaving the screen cancels them and the result is
dropped.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional, Tuple

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen, Screen
from textual.widgets import (
    Button,
    Footer,
    Header,
    Input,
    Label,
    ListItem,
    ListView,
    Static,
    TabPane,
    TabbedContent,
    TextArea,
)

from aurorajournal.errors import JournalError
from aurorajournal.logic import (
    THEMES,
    Journal,
    describe_error,
    load_config,
    open_journal,
    save_config,
)
from aurorajournal.models import Mood, parse_mood

THEME_CSS_PATH = str(Path(__file__).with_name("theme.css"))

LOCK_MARK = "[locked]"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _apply_app_theme(app: App, theme_key: str) -> None:
    """Attach exactly one `theme-<name>` class to the App."""
    target = theme_key if theme_key in THEMES else THEMES[0]
    for name in THEMES:
        app.set_class(False, f"theme-{name}")
    app.set_class(True, f"theme-{target}")


# ---------------------------------------------------------------------------
# Modals
# ---------------------------------------------------------------------------

class PasswordModal(ModalScreen[Optional[Tuple[str, str]]]):
    """Password prompt. Dismisses with (password, new_password) or None.

    Modes: "unlock" / "remove" ask once; "set" asks twice; "change" asks for
    the current password and the new one twice. ``new_password`` is empty
    except in "change" mode.
    """

    TITLES = {
        "unlock": "UNLOCK ENTRY",
        "set": "SET PASSWORD",
        "remove": "REMOVE PASSWORD",
        "change": "CHANGE PASSWORD",
    }

    def __init__(self, mode: str, min_length: int) -> None:
        super().__init__()
        self.mode = mode
        self.min_length = min_length

    def compose(self) -> ComposeResult:
        fields = []
        if self.mode == "change":
            fields.append(Input(placeholder="current password", password=True, id="p0"))
        fields.append(Input(
            placeholder=f"password (min {self.min_length} characters)" if self.mode in ("set", "change") else "password",
            password=True,
            id="p1",
        ))
        if self.mode in ("set", "change"):
            fields.append(Input(placeholder="confirm", password=True, id="p2"))
        yield Container(
            Static(self.TITLES.get(self.mode, "PASSWORD"), classes="title"),
            *fields,
            Horizontal(Button("OK", id="ok", classes="-primary"), Button("Cancel", id="cancel")),
            id="modal-card",
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id != "ok":
            self.dismiss(None)
            return
        p1 = self.query_one("#p1", Input).value
        if not p1:
            self.app.notify("Password required")
            return
        if self.mode in ("set", "change"):
            if len(p1) < self.min_length:
                self.app.notify(f"Password must be at least {self.min_length} characters")
                return
            if p1 != self.query_one("#p2", Input).value:
                self.app.notify("Passwords do not match")
                return
        if self.mode == "change":
            self.dismiss((self.query_one("#p0", Input).value, p1))
        else:
            self.dismiss((p1, ""))


class ConfirmDeleteModal(ModalScreen[bool]):
    """Confirm deleting an entry."""

    def compose(self) -> ComposeResult:
        yield Container(
            Static("DELETE ENTRY?", classes="title"),
            Static("This cannot be undone."),
            Horizontal(
                Button("Delete", id="yes", classes="-primary"),
                Button("Cancel", id="no")
            ),
            id="modal-card",
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss((event.button.id or "") == "yes")


# ---------------------------------------------------------------------------
# Screens
# ---------------------------------------------------------------------------

class JournalHomeScreen(Screen):
    """Entry list / new entry / settings tabs. ESC quits."""

    BINDINGS = [Binding("escape", "app.quit", "Quit")]

    def compose(self) -> ComposeResult:
        yield Header()
        with Container(id="main-card"):
            with TabbedContent():
                with TabPane("Entries"):
                    self.list_view = ListView()
                    yield self.list_view
                with TabPane("New Entry"):
                    self.title_in = Input(placeholder="title")
                    self.mood_in = Input(placeholder="mood: " + ", ".join(m.value for m in Mood))
                    self.body_in = TextArea()
                    yield self.title_in
                    yield self.mood_in
                    yield self.body_in
                    yield Button("Save Entry", id="save_entry", classes="-primary")
                with TabPane("Settings"):
                    yield Static("THEME", classes="hint")
                    yield Horizontal(*[Button(name.title(), id=f"theme_{name}") for name in THEMES])
                    yield Horizontal(Button("Lock Session", id="lock_session"))
        yield Footer()

    @property
    def journal(self) -> Journal:
        return self.app.journal

    async def on_screen_resume(self) -> None:
        await self.refresh_list()

    async def refresh_list(self) -> None:
        await self.list_view.clear()
        for record in await self.journal.entries():
            mark = f"{LOCK_MARK} " if record.locked else ""
            item = ListItem(Label(f"{record.created_at[:10]} - {mark}{record.title}"))
            item.data = record.id
            self.list_view.append(item)

    async def on_list_view_selected(self, message: ListView.Selected) -> None:
        await self.app.push_screen(EntryScreen(message.item.data))

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        bid = event.button.id or ""
        if bid == "save_entry":
            body = self.body_in.text
            if not body.strip():
                self.app.notify("Write something first")
                return
            mood = parse_mood(self.mood_in.value)
            await self.journal.new_entry(self.title_in.value, body, mood)
            self.title_in.value = ""
            self.mood_in.value = ""
            self.body_in.text = ""
            await self.refresh_list()
            self.app.notify("Entry saved")
        elif bid.startswith("theme_"):
            cfg = load_config()
            cfg["active_theme"] = bid[len("theme_"):]
            save_config(cfg)
            _apply_app_theme(self.app, str(cfg["active_theme"]))
        elif bid == "lock_session":
            self.journal.lock_session()
            self.app.notify("All entries locked again")


class EntryScreen(Screen):
    """View and edit one entry, including its password protection."""

    BINDINGS = [Binding("escape", "app.pop_screen", "Back")]

    def __init__(self, entry_id: str) -> None:
        super().__init__()
        self.entry_id = entry_id
        self.locked = False
        self.revealed = False

    def compose(self) -> ComposeResult:
        yield Header()
        with Container(id="main-card"):
            self.title_in = Input(placeholder="title", id="etitle")
            yield self.title_in
            self.meta_label = Static("", classes="hint")
            yield self.meta_label
            self.body_area = TextArea(id="entry-text")
            yield self.body_area
            with Horizontal(id="actions"):
                yield Button("Save", id="save", classes="-primary")
                yield Button("Unlock", id="unlock")
                yield Button("Set Password", id="set_password")
                yield Button("Change Password", id="change_password")
                yield Button("Remove Password", id="remove_password")
                yield Button("Delete", id="delete")
                yield Button("Back", id="back")
        yield Footer()

    @property
    def journal(self) -> Journal:
        return self.app.journal

    async def on_mount(self) -> None:
        await self.load_entry()
        if self.locked and not self.revealed:
            self.prompt("unlock")

    async def load_entry(self) -> None:
        try:
            record, content = await self.journal.read_entry(self.entry_id)
        except JournalError as exc:
            self.app.notify(describe_error(exc))
            self.app.pop_screen()
            return
        self.locked = record.locked
        self.revealed = content is not None
        self.title_in.value = record.title
        mood = f" | mood: {record.mood.value}" if record.mood else ""
        state = " | protected" if record.locked else ""
        self.meta_label.update(f"Created: {record.created_at} | Updated: {record.updated_at}{mood}{state}")
        self.body_area.text = content if content is not None else "(locked - enter the password to read)"
        self.body_area.read_only = not self.revealed
        self.query_one("#unlock", Button).display = self.locked and not self.revealed
        self.query_one("#set_password", Button).display = not self.locked
        self.query_one("#change_password", Button).display = self.locked
        self.query_one("#remove_password", Button).display = self.locked

    def prompt(self, mode: str) -> None:
        def done(result: Optional[Tuple[str, str]]) -> None:
            if result is not None:
                # Exclusive: a newer request cancels one still hashing.
                self.run_worker(self.run_password_action(mode, *result), exclusive=True)

        self.app.push_screen(PasswordModal(mode, self.journal.engine.min_password_length), done)

    async def run_password_action(self, mode: str, password: str, new_password: str) -> None:
        try:
            if mode == "unlock":
                await self.journal.unlock_entry(self.entry_id, password)
                self.app.notify("Entry unlocked for this session")
            elif mode == "set":
                await self.journal.set_password(self.entry_id, password)
                self.app.notify("Password set")
            elif mode == "remove":
                await self.journal.remove_password(self.entry_id, password)
                self.app.notify("Password removed")
            elif mode == "change":
                await self.journal.change_password(self.entry_id, password, new_password)
                self.app.notify("Password changed")
        except JournalError as exc:
            self.app.notify(describe_error(exc), severity="error")
            return
        await self.load_entry()

    def confirm_delete(self) -> None:
        async def done(confirmed: bool) -> None:
            if confirmed:
                await self.journal.delete_entry(self.entry_id)
                self.app.notify("Entry deleted")
                self.app.pop_screen()

        self.app.push_screen(ConfirmDeleteModal(), done)

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        bid = event.button.id or ""
        if bid == "back":
            self.app.pop_screen()
        elif bid == "save":
            if self.locked and not self.revealed:
                self.app.notify("Unlock this entry before editing it")
                return
            try:
                await self.journal.save_entry(self.entry_id, self.title_in.value, self.body_area.text)
            except JournalError as exc:
                self.app.notify(describe_error(exc), severity="error")
                return
            self.app.notify("Entry updated")
            await self.load_entry()
        elif bid == "unlock":
            self.prompt("unlock")
        elif bid == "set_password":
            self.prompt("set")
        elif bid == "change_password":
            self.prompt("change")
        elif bid == "remove_password":
            self.prompt("remove")
        elif bid == "delete":
            self.confirm_delete()


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

class AuroraJournalApp(App):
    """Textual App wrapper. Loads CSS, opens the journal and applies the theme."""

    TITLE = "Aurora Journal"
    CSS_PATH = THEME_CSS_PATH

    def __init__(self, journal: Optional[Journal] = None) -> None:
        super().__init__()
        self.journal = journal

    async def on_mount(self) -> None:
        cfg = load_config()
        if self.journal is None:
            self.journal = open_journal(cfg)
        _apply_app_theme(self, str(cfg.get("active_theme", THEMES[0])))
        await self.push_screen(JournalHomeScreen())


if __name__ == "__main__":
    import asyncio
    asyncio.run(AuroraJournalApp().run_async())
