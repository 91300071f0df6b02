# -*- coding: utf-8 -*-
from __future__ import annotations

import json
import logging
import sqlite3
import time
import uuid
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from .errors import BankError

logger = logging.getLogger(__name__)

NODE_KINDS = ("grade", "chapter", "lesson")

_STATE_KEY = "question_bank"


@dataclass
class BankQuestion:
    id: str
    content: str
    timestamp: float


@dataclass
class BankFigure:
    id: str
    name: str
    tikz_code: str
    timestamp: float
    original_image: Optional[str] = None


@dataclass
class BankNode:
    id: str
    title: str
    kind: str
    parent_id: Optional[str] = None
    children: list[str] = field(default_factory=list)
    questions: list[BankQuestion] = field(default_factory=list)
    figures: list[BankFigure] = field(default_factory=list)


def _new_id(prefix: str = "") -> str:
    token = uuid.uuid4().hex[:12]
    return f"{prefix}_{token}" if prefix else token


class QuestionBank:
    """
    Curriculum tree (grade > chapter > lesson) holding saved questions and figures.

    Nodes live in one id-indexed arena; a parent owns the ordered ids of its
    children. Lookups of unknown ids return None/False instead of raising.
    """

    def __init__(self) -> None:
        self._nodes: dict[str, BankNode] = {}
        self._roots: list[str] = []

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def find(self, node_id: str) -> Optional[BankNode]:
        return self._nodes.get(node_id)

    def roots(self) -> list[BankNode]:
        return [self._nodes[i] for i in self._roots]

    def children(self, node_id: str) -> list[BankNode]:
        node = self._nodes.get(node_id)
        if node is None:
            return []
        return [self._nodes[i] for i in node.children]

    def walk(self, node_id: Optional[str] = None) -> Iterable[BankNode]:
        """Depth-first, parents before children, in display order."""
        stack = list(reversed(self._roots if node_id is None else [node_id]))
        while stack:
            node = self._nodes.get(stack.pop())
            if node is None:
                continue
            yield node
            stack.extend(reversed(node.children))

    def path(self, node_id: str) -> list[str]:
        """Titles from the root down to `node_id`; empty when unknown."""
        out: list[str] = []
        node = self._nodes.get(node_id)
        while node is not None:
            out.append(node.title)
            node = self._nodes.get(node.parent_id) if node.parent_id else None
        return list(reversed(out))

    def _insert(self, node: BankNode) -> BankNode:
        self._nodes[node.id] = node
        if node.parent_id is None:
            self._roots.append(node.id)
        else:
            self._nodes[node.parent_id].children.append(node.id)
        return node

    def add_node(self, parent_id: Optional[str], kind: str, title: str) -> Optional[str]:
        """Add a node under `parent_id` (a grade when `parent_id` is None). Returns the new id."""
        if kind not in NODE_KINDS:
            raise BankError(f"unknown node kind {kind!r}")
        if parent_id is not None and parent_id not in self._nodes:
            return None
        node = BankNode(id=_new_id(parent_id or "grade"), title=title.strip(), kind=kind, parent_id=parent_id)
        self._insert(node)
        return node.id

    def rename(self, node_id: str, title: str) -> bool:
        node = self._nodes.get(node_id)
        if node is None:
            return False
        node.title = title.strip()
        return True

    def delete(self, node_id: str) -> bool:
        """Remove a node with its whole subtree."""
        node = self._nodes.get(node_id)
        if node is None:
            return False
        for sub in list(self.walk(node_id)):
            del self._nodes[sub.id]
        if node.parent_id is None:
            self._roots.remove(node_id)
        else:
            parent = self._nodes.get(node.parent_id)
            if parent is not None:
                parent.children.remove(node_id)
        return True

    def _lesson(self, lesson_id: str) -> Optional[BankNode]:
        node = self._nodes.get(lesson_id)
        if node is None:
            return None
        if node.kind != "lesson":
            raise BankError(f"{node.title!r} is a {node.kind}; questions and figures go into lessons")
        return node

    def save_question(self, lesson_id: str, content: str) -> Optional[BankQuestion]:
        lesson = self._lesson(lesson_id)
        if lesson is None:
            return None
        q = BankQuestion(id=_new_id(), content=content, timestamp=time.time())
        lesson.questions.append(q)
        return q

    def save_questions(self, lesson_id: str, blocks: Iterable[str]) -> int:
        """Save each non-blank block as its own question. Returns how many were saved."""
        lesson = self._lesson(lesson_id)
        if lesson is None:
            return 0
        n = 0
        for block in blocks:
            if block and block.strip():
                lesson.questions.append(BankQuestion(id=_new_id(), content=block, timestamp=time.time()))
                n += 1
        return n

    def save_figure(
        self,
        lesson_id: str,
        name: str,
        tikz_code: str,
        original_image: Optional[str] = None,
    ) -> Optional[BankFigure]:
        lesson = self._lesson(lesson_id)
        if lesson is None:
            return None
        fig = BankFigure(
            id=_new_id(),
            name=name,
            tikz_code=tikz_code,
            timestamp=time.time(),
            original_image=original_image,
        )
        lesson.figures.append(fig)
        return fig

    # --- serialization ---

    def _node_dict(self, node: BankNode) -> dict:
        return {
            "id": node.id,
            "title": node.title,
            "kind": node.kind,
            "children": [self._node_dict(c) for c in self.children(node.id)],
            "questions": [asdict(q) for q in node.questions],
            "figures": [asdict(f) for f in node.figures],
        }

    def to_dict(self) -> dict:
        return {"nodes": [self._node_dict(n) for n in self.roots()]}

    @classmethod
    def from_dict(cls, data: dict) -> "QuestionBank":
        bank = cls()

        def _load(raw: dict, parent_id: Optional[str]) -> None:
            kind = raw.get("kind") or raw.get("type") or "lesson"
            if kind not in NODE_KINDS:
                raise BankError(f"unknown node kind {kind!r}")
            node = BankNode(
                id=str(raw["id"]),
                title=str(raw.get("title") or ""),
                kind=kind,
                parent_id=parent_id,
                questions=[BankQuestion(**q) for q in raw.get("questions") or []],
                figures=[BankFigure(**f) for f in raw.get("figures") or []],
            )
            if node.id in bank._nodes:
                raise BankError(f"duplicate node id {node.id!r}")
            bank._insert(node)
            for child in raw.get("children") or []:
                _load(child, node.id)

        for raw in data.get("nodes") or []:
            _load(raw, None)
        return bank


# Simplified grade 10-12 curriculum (GDPT 2018).
DEFAULT_CURRICULUM: list[tuple[str, str, list[tuple[str, str, list[tuple[str, str]]]]]] = [
    ("grade_10", "Toán Lớp 10", [
        ("g10_c1", "Chương I: Mệnh đề và Tập hợp", [
            ("g10_c1_l1", "Bài 1: Mệnh đề"),
            ("g10_c1_l2", "Bài 2: Tập hợp"),
        ]),
        ("g10_c2", "Chương II: Bất phương trình bậc nhất hai ẩn", [
            ("g10_c2_l1", "Bài 1: Bất phương trình bậc nhất hai ẩn"),
            ("g10_c2_l2", "Bài 2: Hệ bất phương trình bậc nhất hai ẩn"),
        ]),
        ("g10_c3", "Chương III: Hàm số bậc hai và Đồ thị", [
            ("g10_c3_l1", "Bài 1: Hàm số và đồ thị"),
            ("g10_c3_l2", "Bài 2: Hàm số bậc hai"),
        ]),
    ]),
    ("grade_11", "Toán Lớp 11", [
        ("g11_c1", "Chương I: Hàm số lượng giác và PT lượng giác", [
            ("g11_c1_l1", "Bài 1: Góc lượng giác"),
            ("g11_c1_l2", "Bài 2: Giá trị lượng giác"),
            ("g11_c1_l3", "Bài 3: Các công thức lượng giác"),
        ]),
        ("g11_c2", "Chương II: Dãy số. Cấp số cộng và Cấp số nhân", [
            ("g11_c2_l1", "Bài 1: Dãy số"),
            ("g11_c2_l2", "Bài 2: Cấp số cộng"),
        ]),
    ]),
    ("grade_12", "Toán Lớp 12", [
        ("g12_c1", "Chương I: Ứng dụng đạo hàm khảo sát hàm số", [
            ("g12_c1_l1", "Bài 1: Tính đơn điệu của hàm số"),
            ("g12_c1_l2", "Bài 2: Cực trị của hàm số"),
            ("g12_c1_l3", "Bài 3: GTLN và GTNN của hàm số"),
            ("g12_c1_l4", "Bài 4: Đường tiệm cận"),
            ("g12_c1_l5", "Bài 5: Khảo sát sự biến thiên và vẽ đồ thị"),
        ]),
        ("g12_c2", "Chương II: Mũ và Logarit", [
            ("g12_c2_l1", "Bài 1: Lũy thừa"),
            ("g12_c2_l2", "Bài 2: Logarit"),
        ]),
        ("g12_c3", "Chương III: Nguyên hàm - Tích phân", [
            ("g12_c3_l1", "Bài 1: Nguyên hàm"),
            ("g12_c3_l2", "Bài 2: Tích phân"),
        ]),
    ]),
]


def default_bank() -> QuestionBank:
    bank = QuestionBank()
    for grade_id, grade_title, chapters in DEFAULT_CURRICULUM:
        bank._insert(BankNode(id=grade_id, title=grade_title, kind="grade"))
        for chapter_id, chapter_title, lessons in chapters:
            bank._insert(BankNode(id=chapter_id, title=chapter_title, kind="chapter", parent_id=grade_id))
            for lesson_id, lesson_title in lessons:
                bank._insert(BankNode(id=lesson_id, title=lesson_title, kind="lesson", parent_id=chapter_id))
    return bank


class BankStore:
    """The whole bank as one JSON document in a sqlite key/value table."""

    def __init__(self, db_path: Path) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA synchronous=NORMAL;")
        return conn

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS app_state (
                  key TEXT PRIMARY KEY,
                  data TEXT NOT NULL,
                  updated_at REAL NOT NULL
                );
                """
            )

    def load(self) -> QuestionBank:
        """Stored bank, or the default curriculum when nothing usable is stored."""
        with self._connect() as conn:
            row = conn.execute("SELECT data FROM app_state WHERE key = ?", (_STATE_KEY,)).fetchone()
        if row is None:
            bank = default_bank()
            self.save(bank)
            return bank
        try:
            return QuestionBank.from_dict(json.loads(row["data"]))
        except (ValueError, KeyError, TypeError, BankError) as e:
            logger.warning("stored question bank is unreadable, using the default curriculum: %s", e)
            return default_bank()

    def save(self, bank: QuestionBank) -> None:
        data = json.dumps(bank.to_dict(), ensure_ascii=False)
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO app_state (key, data, updated_at) VALUES (?, ?, ?) "
                "ON CONFLICT(key) DO UPDATE SET data=excluded.data, updated_at=excluded.updated_at",
                (_STATE_KEY, data, time.time()),
            )
