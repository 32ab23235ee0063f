from __future__ import annotations
from typing import Callable, Dict, List, Optional

from PySide6.QtCore import Qt, QPoint, QSize, QUrl
from PySide6.QtGui import QColor, QDesktopServices, QPixmap
from PySide6.QtWidgets import (
    QGridLayout,
    QHBoxLayout,
    QHeaderView,
    QLabel,
    QLineEdit,
    QMainWindow,
    QProgressBar,
    QPushButton,
    QScrollArea,
    QSizeGrip,
    QTabWidget,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
    QWidget,
)

import formatters as fmt
from assets import avatar_initial, tournament_url
from model import LeaderboardEntry, RatingSeries, Tournament, UserProfile
from pages import VARIANTS, played_perfs


# -----------------------
# Styling
# -----------------------
BASE_FONT = 14
TITLE_FONT = 24
METRIC_FONT = 18
MINITITLE_FONT = 14

TOKEN_COLORS = {
    "purple": "#c084fc",
    "pink": "#f472b6",
    "red": "#f87171",
    "orange": "#fb923c",
    "yellow": "#facc15",
    "green": "#4ade80",
    "blue": "#60a5fa",
    "gray": "#9ca3af",
    # rank tiers
    "gold": "#facc15",
    "silver": "#d1d5db",
    "bronze": "#d97706",
    "top10": "#60a5fa",
    "default": "#9ca3af",
}

DARK_QSS = f"""
QMainWindow, QWidget {{
  background-color: #000000;
  color: #ffffff;
  font-family: Segoe UI;
  font-size: {BASE_FONT}px;
}}

QWidget#WindowFrame {{
  background-color: #000000;
  border: 1px solid #ffffff;
}}

QWidget#TitleBar {{
  background-color: #000000;
  border: 0px;
  border-bottom: 1px solid #ffffff;
}}

QLabel#Subtle {{ color: #d8d8d8; }}
QLabel#Error {{ color: #f87171; border: 1px solid #f87171; padding: 6px; }}
QLabel#Badge {{ border: 1px solid #ffffff; padding: 1px 6px; font-weight: 700; }}

QLabel#Title {{
  font-size: {TITLE_FONT}px;
  font-weight: 700;
}}

QLabel#MiniTitle {{
  font-size: {MINITITLE_FONT}px;
  font-weight: 700;
}}

QLabel#Metric {{
  font-size: {METRIC_FONT}px;
  font-weight: 700;
}}

QPushButton {{
  background-color: #000000;
  border: 1px solid #ffffff;
  border-radius: 0px;
  padding: 8px 14px;
}}
QPushButton:hover {{ background-color: #101010; }}
QPushButton:pressed {{ background-color: #151515; }}
QPushButton:checked {{ background-color: #1d4ed8; }}
QPushButton:disabled {{ color: #666666; border-color: #666666; }}

QLineEdit {{
  background-color: #000000;
  border: 1px solid #ffffff;
  padding: 6px;
}}

QWidget#Card {{
  background-color: #000000;
  border: 1px solid #ffffff;
  border-radius: 0px;
}}

QProgressBar {{
  border: 1px solid #333333;
  background-color: #111111;
  max-height: 6px;
}}
QProgressBar::chunk {{ background-color: #3b82f6; }}

QTabWidget::pane {{ border: 0px; }}
QTabBar::tab {{
  background-color: #000000;
  border: 1px solid #ffffff;
  padding: 8px 18px;
}}
QTabBar::tab:selected {{ background-color: #151515; }}

QTableWidget {{
  background-color: #000000;
  border: 1px solid #ffffff;
  gridline-color: #222222;
  border-radius: 0px;
}}
QTableWidget::item {{
  border-bottom: 1px solid #111111;
  padding: 2px 6px;
}}
QTableWidget::item:selected {{ background-color: #000000; }}

QHeaderView::section {{
  background-color: #000000;
  color: #ffffff;
  border: 1px solid #ffffff;
  padding: 8px;
}}
"""


def _color(token: str) -> str:
    return TOKEN_COLORS.get(token, TOKEN_COLORS["default"])


def _card(title: str) -> tuple[QWidget, QVBoxLayout]:
    card = QWidget()
    card.setObjectName("Card")
    outer = QVBoxLayout(card)
    outer.setContentsMargins(14, 10, 14, 12)
    outer.setSpacing(8)
    t = QLabel(title)
    t.setObjectName("MiniTitle")
    outer.addWidget(t)
    return card, outer


def _label(text: str, name: str = "Subtle") -> QLabel:
    lbl = QLabel(text)
    lbl.setObjectName(name)
    return lbl


def _progress(percent: Optional[float]) -> QProgressBar:
    bar = QProgressBar()
    bar.setRange(0, 100)
    bar.setTextVisible(False)
    bar.setValue(int(round(percent or 0)))
    return bar


def _clear_layout(layout) -> None:
    while layout.count():
        item = layout.takeAt(0)
        w = item.widget()
        if w is not None:
            w.deleteLater()
        elif item.layout() is not None:
            _clear_layout(item.layout())


class AvatarLabel(QLabel):
    """Avatar image, or the username's initial when no image is available."""
    def __init__(self, size: int):
        super().__init__()
        self._size = size
        self.setFixedSize(size, size)
        self.setAlignment(Qt.AlignCenter)
        self.setStyleSheet(f"border: 1px solid #555555; font-size: {size // 3}px; font-weight: 700;")

    def set_avatar(self, username: str, raw: bytes) -> None:
        pix = QPixmap()
        if raw and pix.loadFromData(raw):
            self.setText("")
            self.setPixmap(pix.scaled(QSize(self._size, self._size), Qt.KeepAspectRatio, Qt.SmoothTransformation))
            return
        self.setPixmap(QPixmap())
        self.setText(avatar_initial(username))


# -----------------------
# Title bar
# -----------------------
class TitleBar(QWidget):
    def __init__(self, parent: "MainWindow"):
        super().__init__(parent)
        self.setObjectName("TitleBar")
        self._parent = parent
        self._drag_pos: Optional[QPoint] = None

        self.setFixedHeight(56)

        layout = QHBoxLayout(self)
        layout.setContentsMargins(14, 8, 14, 8)
        layout.setSpacing(12)

        self.app_title = QLabel("Pawnscope")
        self.app_title.setObjectName("MiniTitle")

        self.status = QLabel("Ready")
        self.status.setObjectName("Subtle")

        self.refresh_btn = QPushButton("Refresh")

        self.btn_min = QPushButton("—")
        self.btn_min.setFixedSize(54, 36)
        self.btn_min.clicked.connect(parent.showMinimized)

        self.btn_close = QPushButton("✕")
        self.btn_close.setFixedSize(54, 36)
        self.btn_close.clicked.connect(parent.close)

        layout.addWidget(self.app_title, 0, Qt.AlignLeft)
        layout.addSpacing(8)
        layout.addWidget(self.status, 1)
        layout.addWidget(self.refresh_btn)
        layout.addSpacing(10)
        layout.addWidget(self.btn_min)
        layout.addWidget(self.btn_close)

    def mousePressEvent(self, e):
        if e.button() == Qt.LeftButton:
            self._drag_pos = e.globalPosition().toPoint()
        super().mousePressEvent(e)

    def mouseMoveEvent(self, e):
        if self._drag_pos and e.buttons() & Qt.LeftButton:
            delta = e.globalPosition().toPoint() - self._drag_pos
            self._parent.move(self._parent.pos() + delta)
            self._drag_pos = e.globalPosition().toPoint()
        super().mouseMoveEvent(e)

    def mouseReleaseEvent(self, e):
        self._drag_pos = None
        super().mouseReleaseEvent(e)


# -----------------------
# Profile page
# -----------------------
class ProfileView(QWidget):
    def __init__(self):
        super().__init__()
        self._search_callback: Optional[Callable[[str], None]] = None

        root = QVBoxLayout(self)
        root.setContentsMargins(0, 10, 0, 0)
        root.setSpacing(8)

        search = QHBoxLayout()
        self.input = QLineEdit()
        self.input.setPlaceholderText("Enter Lichess username...")
        self.search_btn = QPushButton("Search")
        self.search_btn.setEnabled(False)
        search.addWidget(self.input, 1)
        search.addWidget(self.search_btn)
        root.addLayout(search)

        self.error = _label("", "Error")
        self.error.hide()
        root.addWidget(self.error)

        self.hint = _label("Search for a player to see their profile.")
        root.addWidget(self.hint)

        # Header card
        self.header_card, h_outer = _card("[Player]")
        h_row = QHBoxLayout()
        h_row.setSpacing(16)
        self.avatar = AvatarLabel(96)
        name_box = QVBoxLayout()
        name_row = QHBoxLayout()
        self.name = _label("—", "Title")
        self.badges = QHBoxLayout()
        name_row.addWidget(self.name)
        name_row.addLayout(self.badges)
        name_row.addStretch(1)
        self.bio = _label("")
        self.bio.setWordWrap(True)
        name_box.addLayout(name_row)
        name_box.addWidget(self.bio)
        h_row.addWidget(self.avatar)
        h_row.addLayout(name_box, 1)
        h_outer.addLayout(h_row)

        self.stats = QGridLayout()
        self.stats.setHorizontalSpacing(26)
        self.stats.setVerticalSpacing(6)
        h_outer.addLayout(self.stats)
        root.addWidget(self.header_card)

        # Ratings
        self.ratings_card, r_outer = _card("[Ratings & Performance]")
        self.ratings = QGridLayout()
        self.ratings.setSpacing(6)
        r_outer.addLayout(self.ratings)
        root.addWidget(self.ratings_card)

        # History
        self.history_card, hi_outer = _card("[Rating History]")
        self.history = QTableWidget(0, 4)
        self.history.setHorizontalHeaderLabels(["Variant", "Points", "Latest", "Peak"])
        self.history.horizontalHeader().setSectionResizeMode(QHeaderView.Stretch)
        self.history.setEditTriggers(QTableWidget.NoEditTriggers)
        self.history.verticalHeader().setVisible(False)
        hi_outer.addWidget(self.history)
        root.addWidget(self.history_card, 1)

        self.header_card.hide()
        self.ratings_card.hide()
        self.history_card.hide()

        self.input.textChanged.connect(lambda t: self.search_btn.setEnabled(bool(t.strip())))
        self.input.returnPressed.connect(self._on_search)
        self.search_btn.clicked.connect(self._on_search)

    def set_search_callback(self, fn: Callable[[str], None]):
        self._search_callback = fn

    def _on_search(self):
        username = self.input.text().strip()
        if username and self._search_callback:
            self._search_callback(username)

    def set_loading(self, loading: bool):
        self.input.setEnabled(not loading)
        self.search_btn.setEnabled(not loading and bool(self.input.text().strip()))
        self.search_btn.setText("Searching..." if loading else "Search")
        if loading:
            self.header_card.hide()
            self.ratings_card.hide()
            self.history_card.hide()
            self.hint.hide()

    def set_error(self, message: Optional[str]):
        self.error.setText(message or "")
        self.error.setVisible(bool(message))

    def set_profile(self, profile: UserProfile, avatar_bytes: bytes, history: List[RatingSeries]):
        self.hint.hide()
        self.avatar.set_avatar(profile.username, avatar_bytes)
        self.name.setText(profile.username)

        _clear_layout(self.badges)
        if profile.title:
            self.badges.addWidget(_label(profile.title, "Badge"))
        if profile.patron:
            self.badges.addWidget(_label("PATRON", "Badge"))
        if profile.online:
            self.badges.addWidget(_label("ONLINE", "Badge"))

        self.bio.setText(profile.bio or "")
        self.bio.setVisible(bool(profile.bio))

        _clear_layout(self.stats)
        cells = []
        count = profile.count
        cells.append(("Games", str(fmt.total_games(count))))
        if count is not None:
            if count.win is not None:
                cells.append(("Wins", str(count.win)))
            if count.draw is not None:
                cells.append(("Draws", str(count.draw)))
            if count.loss is not None:
                cells.append(("Losses", str(count.loss)))
            cells.append(("Win rate", f"{fmt.win_rate(count):.1f}%"))
        if profile.created_at:
            cells.append(("Member since", fmt.format_date(profile.created_at)))
        if profile.seen_at:
            cells.append(("Last seen", fmt.format_date(profile.seen_at)))
        if profile.play_time_total is not None:
            cells.append(("Play time", fmt.format_play_time(profile.play_time_total)))
        if profile.followable is not None:
            cells.append(("Following", str(profile.nb_following or 0)))
        for i, (title, value) in enumerate(cells):
            box = QVBoxLayout()
            box.addWidget(_label(title))
            box.addWidget(_label(value, "Metric"))
            self.stats.addLayout(box, i // 4, i % 4)
        self.header_card.show()

        _clear_layout(self.ratings)
        perfs = played_perfs(profile)
        if not perfs:
            self.ratings.addWidget(_label("No rated games yet."), 0, 0)
        for i, (key, perf) in enumerate(perfs):
            card, outer = _card(fmt.format_perf_key(key))
            rating = _label(fmt.or_placeholder(perf.rating), "Metric")
            rating.setStyleSheet(f"color: {_color(fmt.profile_rating_tier(perf.rating))};")
            outer.addWidget(rating)
            if perf.rd:
                outer.addWidget(_label(f"±{perf.rd}"))
            line = f"{perf.games} games"
            prog = fmt.format_progress(perf.prog)
            if prog is not None:
                line += f"  {prog}"
            outer.addWidget(_label(line))
            outer.addWidget(_progress(fmt.games_bar_percent(perf.games)))
            self.ratings.addWidget(card, i // 4, i % 4)
        self.ratings_card.show()

        self.history.setRowCount(0)
        for series in history:
            if not series.points:
                continue
            r = self.history.rowCount()
            self.history.insertRow(r)
            self.history.setItem(r, 0, QTableWidgetItem(series.name))
            self.history.setItem(r, 1, QTableWidgetItem(str(len(series.points))))
            self.history.setItem(r, 2, QTableWidgetItem(fmt.or_placeholder(series.latest)))
            self.history.setItem(r, 3, QTableWidgetItem(fmt.or_placeholder(fmt.rating_peak(series))))
        self.history_card.setVisible(self.history.rowCount() > 0)


# -----------------------
# Leaderboards page
# -----------------------
class LeaderboardView(QWidget):
    def __init__(self, selected: str = "rapid"):
        super().__init__()
        self._variant_callback: Optional[Callable[[str], None]] = None
        self.selected = selected

        root = QVBoxLayout(self)
        root.setContentsMargins(0, 10, 0, 0)
        root.setSpacing(8)

        row = QHBoxLayout()
        self.variant_buttons = {}
        for key, label in VARIANTS:
            btn = QPushButton(label)
            btn.setCheckable(True)
            btn.setChecked(key == selected)
            btn.clicked.connect(lambda _checked=False, k=key: self._on_variant(k))
            row.addWidget(btn)
            self.variant_buttons[key] = btn
        row.addStretch(1)
        root.addLayout(row)

        self.error = _label("", "Error")
        self.error.hide()
        root.addWidget(self.error)

        self.heading = _label("", "MiniTitle")
        root.addWidget(self.heading)

        self.table = QTableWidget(0, 6)
        self.table.setHorizontalHeaderLabels(["Rank", "Player", "Title", "Rating", "Games", "Progress"])
        self.table.horizontalHeader().setSectionResizeMode(QHeaderView.Stretch)
        self.table.setEditTriggers(QTableWidget.NoEditTriggers)
        self.table.verticalHeader().setVisible(False)
        self.table.verticalHeader().setDefaultSectionSize(40)
        self.table.setFocusPolicy(Qt.NoFocus)
        self.table.setSelectionMode(QTableWidget.NoSelection)
        root.addWidget(self.table, 1)

        self.footer = _label("")
        root.addWidget(self.footer)

    def set_variant_callback(self, fn: Callable[[str], None]):
        self._variant_callback = fn

    def _on_variant(self, key: str):
        self.selected = key
        for k, btn in self.variant_buttons.items():
            btn.setChecked(k == key)
        if self._variant_callback:
            self._variant_callback(key)

    def set_loading(self, loading: bool):
        self.heading.setText("Loading..." if loading else f"🏆 Top {self.selected.title()} Players")

    def set_error(self, message: Optional[str]):
        self.error.setText(message or "")
        self.error.setVisible(bool(message))

    def set_entries(self, entries: List[LeaderboardEntry], variant: str, avatars: Optional[Dict[str, bytes]] = None):
        avatars = avatars or {}
        self.table.setRowCount(0)
        for index, player in enumerate(entries):
            rank = index + 1
            perf = player.perf(variant)
            r = self.table.rowCount()
            self.table.insertRow(r)

            medal = fmt.rank_medal(rank)
            rank_item = QTableWidgetItem(f"#{rank} {medal}" if medal else f"#{rank}")
            rank_item.setForeground(QColor(_color(fmt.rank_tier(rank))))
            if rank <= 10:
                f = rank_item.font()
                f.setBold(True)
                rank_item.setFont(f)
            self.table.setItem(r, 0, rank_item)

            self.table.setCellWidget(r, 1, self._player_cell(player, avatars.get(player.username, b"")))
            self.table.setItem(r, 2, QTableWidgetItem(fmt.or_placeholder(player.title)))

            rating = perf.rating if perf else None
            rating_text = fmt.or_placeholder(rating, falsy=True)
            if perf and perf.rd:
                rating_text += f" ±{perf.rd}"
            rating_item = QTableWidgetItem(rating_text)
            rating_item.setForeground(QColor(_color(fmt.rating_tier(rating))))
            self.table.setItem(r, 3, rating_item)

            self.table.setItem(r, 4, QTableWidgetItem(fmt.or_placeholder(perf.games if perf else None, falsy=True)))

            prog = fmt.format_progress(perf.prog if perf else None)
            prog_item = QTableWidgetItem(fmt.or_placeholder(prog))
            if perf and perf.prog is not None:
                prog_item.setForeground(QColor(_color("green" if perf.prog >= 0 else "red")))
            self.table.setItem(r, 5, prog_item)

        if entries:
            self.footer.setText(f"Showing top {len(entries)} players in {variant}")
        else:
            self.footer.setText("No leaderboard data available.")

    def _player_cell(self, player: LeaderboardEntry, raw: bytes) -> QWidget:
        cell = QWidget()
        row = QHBoxLayout(cell)
        row.setContentsMargins(4, 2, 4, 2)
        row.setSpacing(8)
        avatar = AvatarLabel(32)
        avatar.set_avatar(player.username, raw)
        row.addWidget(avatar)
        row.addWidget(QLabel(player.username))
        if player.online:
            online = QLabel("● Online")
            online.setStyleSheet(f"color: {_color('green')};")
            row.addWidget(online)
        row.addStretch(1)
        return cell


# -----------------------
# Tournaments page
# -----------------------
class TournamentsView(QWidget):
    def __init__(self):
        super().__init__()
        root = QVBoxLayout(self)
        root.setContentsMargins(0, 10, 0, 0)
        root.setSpacing(8)

        self.heading = _label("Upcoming Tournaments", "Title")
        root.addWidget(self.heading)

        self.error = _label("", "Error")
        self.error.hide()
        root.addWidget(self.error)

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        inner = QWidget()
        self.grid = QGridLayout(inner)
        self.grid.setSpacing(6)
        self.grid.setAlignment(Qt.AlignTop)
        scroll.setWidget(inner)
        root.addWidget(scroll, 1)

    def set_loading(self, loading: bool):
        self.heading.setText("Loading..." if loading else "Upcoming Tournaments")

    def set_error(self, message: Optional[str]):
        self.error.setText(message or "")
        self.error.setVisible(bool(message))

    def set_tournaments(self, tournaments: List[Tournament]):
        _clear_layout(self.grid)
        if not tournaments:
            self.grid.addWidget(_label("No upcoming tournaments found."), 0, 0)
            return

        for i, t in enumerate(tournaments):
            card, outer = _card(t.display_name)
            if t.created_by:
                outer.addWidget(_label(f"Created by: {t.created_by}"))
            info = QGridLayout()
            info.setHorizontalSpacing(18)
            info.addWidget(_label("Players"), 0, 0)
            info.addWidget(QLabel(fmt.format_capacity(t.nb_players, t.max_players)), 0, 1)
            info.addWidget(_label("Starts"), 1, 0)
            info.addWidget(QLabel(fmt.format_time(t.starts_at)), 1, 1)
            info.addWidget(_label("Time control"), 2, 0)
            info.addWidget(QLabel(fmt.format_time_control(t.clock)), 2, 1)
            row = 3
            if t.minutes:
                info.addWidget(_label("Duration"), row, 0)
                info.addWidget(QLabel(fmt.format_duration(t.minutes)), row, 1)
                row += 1
            info.addWidget(_label("Variant"), row, 0)
            info.addWidget(QLabel(fmt.format_variant(t.variant_name)), row, 1)
            row += 1
            if t.rated is not None:
                info.addWidget(_label("Rated"), row, 0)
                info.addWidget(QLabel(fmt.format_rated(t.rated)), row, 1)
            outer.addLayout(info)

            capacity = fmt.capacity_percent(t.nb_players, t.max_players)
            if capacity is not None:
                outer.addWidget(_progress(capacity))

            link = QPushButton("View on Lichess")
            link.clicked.connect(lambda _checked=False, u=tournament_url(t.id): QDesktopServices.openUrl(QUrl(u)))
            outer.addWidget(link)
            self.grid.addWidget(card, i // 3, i % 3)


# -----------------------
# Main Window
# -----------------------
class MainWindow(QMainWindow):
    def __init__(self, default_variant: str = "rapid"):
        super().__init__()

        self.setWindowFlags(Qt.Window | Qt.FramelessWindowHint)

        self.window_frame = QWidget()
        self.window_frame.setObjectName("WindowFrame")
        self.setCentralWidget(self.window_frame)

        frame_layout = QVBoxLayout(self.window_frame)
        frame_layout.setContentsMargins(1, 1, 1, 1)
        frame_layout.setSpacing(0)

        self.title_bar = TitleBar(self)
        frame_layout.addWidget(self.title_bar)

        root = QWidget()
        frame_layout.addWidget(root, 1)
        layout = QVBoxLayout(root)
        layout.setContentsMargins(14, 10, 14, 14)

        self.resize(1220, 800)
        self.setMinimumSize(900, 600)

        self.status = self.title_bar.status
        self.refresh_btn = self.title_bar.refresh_btn
        self.refresh_btn.clicked.connect(lambda: self.on_manual_refresh())

        self.profile_view = ProfileView()
        self.leaderboard_view = LeaderboardView(default_variant)
        self.tournaments_view = TournamentsView()

        self.tabs = QTabWidget()
        self.tabs.addTab(self.profile_view, "Profile")
        self.tabs.addTab(self.leaderboard_view, "Leaderboards")
        self.tabs.addTab(self.tournaments_view, "Tournaments")
        layout.addWidget(self.tabs, 1)

        self._grip = QSizeGrip(self.window_frame)
        self._grip.setFixedSize(18, 18)
        self._grip.raise_()

        self._refresh_callback: Optional[Callable[[int], None]] = None

    def resizeEvent(self, event):
        super().resizeEvent(event)
        margin = 2
        self._grip.move(
            self.window_frame.width() - self._grip.width() - margin,
            self.window_frame.height() - self._grip.height() - margin,
        )

    def apply_theme(self):
        self.setStyleSheet(DARK_QSS)

    def set_refresh_callback(self, fn: Callable[[int], None]):
        """fn receives the index of the visible tab."""
        self._refresh_callback = fn

    def on_manual_refresh(self):
        if self._refresh_callback:
            self._refresh_callback(self.tabs.currentIndex())

    def set_status(self, text: str):
        self.status.setText(text)
