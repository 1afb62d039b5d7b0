import asyncio
import curses
import logging
from typing import List

from .dragdrop import DragSource
from .editor import EditorSession
from .lifecycle import RequestLifecycle, ViewKind, describe
from .operations import SubscriptionEvent
from .settings import Settings

logger = logging.getLogger(__name__)

MAX_LOG_LINES = 100


def _status(lifecycle: RequestLifecycle) -> str:
    view = describe(lifecycle, content=lambda _: "done", loading_text="pending", idle_text="idle")
    return view.text


class CursesInterface:
    """Small curses front end for an :class:`EditorSession`.

    The palette is listed on the left; ``d`` drops the selected entry on the
    viewport, which starts a create+render sequence.
    """

    def __init__(self, session: EditorSession) -> None:
        self.session = session
        self.log: List[str] = []
        self.selected = 0

    # -- helpers -----------------------------------------------------
    def add_log(self, msg: str) -> None:
        self.log.append(msg)
        if len(self.log) > MAX_LOG_LINES:
            self.log.pop(0)

    def entries(self) -> List[DragSource]:
        return [src for sources in self.session.palette.values() for src in sources]

    def on_node_added(self, event: SubscriptionEvent) -> None:
        mesh = f" mesh={event.mesh_name}" if event.mesh_name else ""
        self.add_log(f"Node added: {event.node_name}{mesh}")

    def handle_key(self, key: int) -> None:
        entries = self.entries()
        if not entries:
            return
        if key in (ord('j'), curses.KEY_DOWN):
            self.selected = (self.selected + 1) % len(entries)
        elif key in (ord('k'), curses.KEY_UP):
            self.selected = (self.selected - 1) % len(entries)
        elif key in (ord('d'), ord('D'), ord('\n')):
            name = entries[self.selected].identity.name
            op = self.session.drop_asset(name)
            if op is None:
                self.add_log(f"Viewport does not accept {name}")
            else:
                self.add_log(f"Dropped {name}")

    def draw_palette(self, win) -> None:
        h, w = win.getmaxyx()
        win.erase()
        win.box()
        row = 1
        idx = 0
        for group, sources in self.session.palette.items():
            if row >= h - 1:
                break
            win.addnstr(row, 1, group, w - 2, curses.A_BOLD)
            row += 1
            for src in sources:
                if row >= h - 1:
                    break
                attr = curses.A_REVERSE if idx == self.selected else curses.A_NORMAL
                win.addnstr(row, 3, src.identity.name, w - 4, attr)
                row += 1
                idx += 1
        win.refresh()

    def draw_viewport(self, win, project_name: str) -> None:
        h, w = win.getmaxyx()
        win.erase()
        win.box()
        win.addnstr(1, 1, f"Project: {project_name}", w - 2)
        win.addnstr(2, 1, self.session.viewport_status(), w - 2)
        ops = self.session.sequencer.operations[-(h - 4):] if h > 4 else []
        for i, op in enumerate(ops, 3):
            text = f"{op.payload.asset_name}: create {_status(op.create)}, render {_status(op.render)}"
            win.addnstr(i, 1, text, w - 2)
        win.refresh()

    def draw_gate(self, win, text: str) -> None:
        win.erase()
        win.box()
        win.addnstr(1, 1, text, win.getmaxyx()[1] - 2)
        win.refresh()

    def draw_logs(self, win) -> None:
        h, w = win.getmaxyx()
        start = max(0, len(self.log) - (h - 2))
        win.erase()
        win.box()
        for i, line in enumerate(self.log[start:], 1):
            win.addnstr(i, 1, line, w - 2)
        win.refresh()

    # -- main loop ---------------------------------------------------
    async def run(self, stdscr) -> None:
        curses.curs_set(0)
        stdscr.nodelay(True)
        h, w = stdscr.getmaxyx()
        palette_win = curses.newwin(h // 2, w // 3, 0, 0)
        view_win = curses.newwin(h // 2, w - w // 3, 0, w // 3)
        log_win = curses.newwin(h - h // 2, w, h // 2, 0)
        self.session.feed.register_event_handler(self.on_node_added)
        start_task = asyncio.create_task(self.session.start())
        self.add_log("Press q to quit. j/k select, d drop on viewport, r retry load")
        try:
            while True:
                key = stdscr.getch()
                if key in (ord('q'), ord('Q')):
                    break
                view = self.session.describe()
                if view.kind is ViewKind.CONTENT:
                    if key != -1:
                        self.handle_key(key)
                    self.draw_palette(palette_win)
                    self.draw_viewport(view_win, view.text)
                else:
                    if view.kind is ViewKind.ERROR and key in (ord('r'), ord('R')):
                        self.session.loader.reload()
                        self.add_log("Retrying project load")
                    self.draw_gate(palette_win, "")
                    self.draw_gate(view_win, view.text)
                self.draw_logs(log_win)
                await asyncio.sleep(0.1)
        finally:
            if not start_task.done():
                start_task.cancel()


def run_curses_client(settings: Settings) -> None:
    async def main(stdscr) -> None:
        session = EditorSession(settings)
        try:
            await CursesInterface(session).run(stdscr)
        finally:
            await session.close()

    curses.wrapper(lambda stdscr: asyncio.run(main(stdscr)))
