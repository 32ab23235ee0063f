from __future__ import annotations

import logging
from typing import Any, Callable, List

from PySide6.QtWidgets import QApplication
from PySide6.QtCore import QTimer, QObject, Signal, QThread, Qt

from assets import ImageFetcher, avatar_url
from pages import (
    LEADERBOARD_ERROR,
    PROFILE_ERROR,
    TOURNAMENTS_ERROR,
    PageState,
    load_leaderboard,
    load_leaderboard_avatars,
    load_profile,
    load_upcoming_tournaments,
)
from settings import AppSettings, load_settings
from ui_main import MainWindow


logger = logging.getLogger(__name__)

APP_VERSION = "1.0.0"

PROFILE_TAB, LEADERBOARD_TAB, TOURNAMENTS_TAB = range(3)


# -----------------------
# Dispatcher: guarantees code runs on UI thread
# -----------------------
class Dispatcher(QObject):
    run = Signal(object)  # callable

    def __init__(self):
        super().__init__()
        self.run.connect(self._exec, Qt.QueuedConnection)

    def _exec(self, fn):
        try:
            fn()
        except Exception:
            # Avoid crashing UI thread silently
            logger.exception("UI-dispatch error")


# -----------------------
# Worker: run one page fetch without freezing UI
# -----------------------
class FetchWorker(QObject):
    finished = Signal(int, object)   # token, result
    failed = Signal(int, str)        # token, message

    def __init__(self, token: int, fn: Callable[[], Any], label: str):
        super().__init__()
        self.token = token
        self.fn = fn
        self.label = label

    def run(self):
        try:
            result = self.fn()
        except Exception as e:
            logger.exception("%s fetch error", self.label)
            self.failed.emit(self.token, str(e))
            return
        self.finished.emit(self.token, result)


class WorkerTracker:
    """
    Holds references to running QThread/worker pairs so they aren't
    garbage collected mid-fetch. Pairs are released once their thread
    finishes.
    """
    def __init__(self):
        self._objs: List[object] = []

    def track(self, *objs: object) -> None:
        self._objs.extend(objs)

    def release(self, *objs: object) -> None:
        # by identity, not ==
        self._objs = [o for o in self._objs if not any(o is x for x in objs)]

    def threads(self) -> List[QThread]:
        return [o for o in self._objs if isinstance(o, QThread)]

    def __len__(self) -> int:
        return len(self._objs)


def configure_logging(settings: AppSettings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main():
    settings = load_settings()
    configure_logging(settings)
    logger.info("Pawnscope %s using %s", APP_VERSION, settings.api_base_url)

    app = QApplication([])
    win = MainWindow(settings.default_variant)
    win.apply_theme()
    win.show()

    dispatcher = Dispatcher()
    images = ImageFetcher(timeout=settings.request_timeout)

    # keep references (prevents GC)
    workers = WorkerTracker()

    def stop_thread(t: QThread):
        if t.isRunning():
            t.quit()
            t.wait(2000)

    app.aboutToQuit.connect(lambda: [stop_thread(t) for t in workers.threads()])

    def start_worker(token: int, fn: Callable[[], Any], label: str,
                     on_done: Callable[[int, Any], None], on_fail: Callable[[int, str], None]):
        t = QThread()
        w = FetchWorker(token, fn, label)
        w.moveToThread(t)
        workers.track(t, w)

        # IMPORTANT: never touch UI in worker thread, dispatch to UI thread
        w.finished.connect(lambda tok, res: dispatcher.run.emit(lambda: on_done(tok, res)), Qt.QueuedConnection)
        w.failed.connect(lambda tok, msg: dispatcher.run.emit(lambda: on_fail(tok, msg)), Qt.QueuedConnection)
        w.finished.connect(t.quit)
        w.failed.connect(t.quit)
        t.started.connect(w.run)
        t.finished.connect(lambda: dispatcher.run.emit(lambda: workers.release(t, w)))
        t.finished.connect(w.deleteLater)
        t.finished.connect(t.deleteLater)
        t.start()

    # ---------- Profile ----------
    profile_state = PageState()
    last_username = {"value": ""}

    def search_profile(username: str):
        last_username["value"] = username
        token = profile_state.begin(clear_data=True)
        win.profile_view.set_error(None)
        win.profile_view.set_loading(True)
        win.set_status(f"Searching {username}…")

        def fetch():
            data = load_profile(username, settings)
            raw = images.get_bytes(avatar_url(data.profile.username or username, 120))
            return data, raw

        start_worker(token, fetch, "Profile", _on_profile_done, _on_profile_failed)

    def _on_profile_done(token: int, result):
        if not profile_state.resolve(token, result):
            return
        data, raw = result
        win.profile_view.set_loading(False)
        win.profile_view.set_profile(data.profile, raw, data.history)
        win.set_status(f"Loaded {data.profile.username}")

    def _on_profile_failed(token: int, _msg: str):
        if not profile_state.reject(token, PROFILE_ERROR):
            return
        win.profile_view.set_loading(False)
        win.profile_view.set_error(PROFILE_ERROR)
        win.set_status("Profile lookup failed.")

    win.profile_view.set_search_callback(search_profile)

    # ---------- Leaderboards ----------
    leaderboard_state = PageState()

    def fetch_leaderboard(variant: str):
        token = leaderboard_state.begin()
        win.leaderboard_view.set_error(None)
        win.leaderboard_view.set_loading(True)
        win.set_status(f"Loading {variant} leaderboard…")
        start_worker(
            token,
            lambda: _fetch_leaderboard(variant),
            "Leaderboard",
            lambda tok, result: _on_leaderboard_done(tok, result, variant),
            _on_leaderboard_failed,
        )

    def _fetch_leaderboard(variant: str):
        entries = load_leaderboard(variant, settings)
        return entries, load_leaderboard_avatars(entries, images)

    def _on_leaderboard_done(token: int, result, variant: str):
        if not leaderboard_state.resolve(token, result):
            return
        entries, avatars = result
        win.leaderboard_view.set_loading(False)
        win.leaderboard_view.set_entries(entries, variant, avatars)
        win.set_status(f"Top {len(entries)} {variant} players")

    def _on_leaderboard_failed(token: int, _msg: str):
        if not leaderboard_state.reject(token, LEADERBOARD_ERROR):
            return
        win.leaderboard_view.set_loading(False)
        win.leaderboard_view.set_error(LEADERBOARD_ERROR)
        win.set_status("Leaderboard fetch failed.")

    win.leaderboard_view.set_variant_callback(fetch_leaderboard)

    # ---------- Tournaments ----------
    tournaments_state = PageState()

    def fetch_tournaments():
        token = tournaments_state.begin()
        win.tournaments_view.set_error(None)
        win.tournaments_view.set_loading(True)
        win.set_status("Loading tournaments…")
        start_worker(token, lambda: load_upcoming_tournaments(settings), "Tournament",
                     _on_tournaments_done, _on_tournaments_failed)

    def _on_tournaments_done(token: int, tournaments):
        if not tournaments_state.resolve(token, tournaments):
            return
        win.tournaments_view.set_loading(False)
        win.tournaments_view.set_tournaments(tournaments)
        win.set_status(f"{len(tournaments)} upcoming tournaments")

    def _on_tournaments_failed(token: int, _msg: str):
        if not tournaments_state.reject(token, TOURNAMENTS_ERROR):
            return
        win.tournaments_view.set_loading(False)
        win.tournaments_view.set_error(TOURNAMENTS_ERROR)
        win.set_status("Tournament fetch failed.")

    # ---------- Refresh ----------
    def refresh(tab: int):
        if tab == PROFILE_TAB:
            if last_username["value"]:
                search_profile(last_username["value"])
        elif tab == LEADERBOARD_TAB:
            fetch_leaderboard(win.leaderboard_view.selected)
        elif tab == TOURNAMENTS_TAB:
            fetch_tournaments()

    win.set_refresh_callback(refresh)

    QTimer.singleShot(150, lambda: fetch_leaderboard(win.leaderboard_view.selected))
    QTimer.singleShot(200, fetch_tournaments)

    app.exec()


if __name__ == "__main__":
    main()
