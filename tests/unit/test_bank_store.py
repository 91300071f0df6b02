import sqlite3

import pytest

from mathdoc.bank_store import BankStore, QuestionBank, default_bank
from mathdoc.errors import BankError


def test_default_curriculum():
    bank = default_bank()
    assert [n.id for n in bank.roots()] == ["grade_10", "grade_11", "grade_12"]
    lesson = bank.find("g10_c1_l1")
    assert lesson is not None and lesson.kind == "lesson"
    assert bank.path("g10_c1_l1") == ["Toán Lớp 10", "Chương I: Mệnh đề và Tập hợp", "Bài 1: Mệnh đề"]
    assert [c.id for c in bank.children("g12_c1")][-1] == "g12_c1_l5"


def test_unknown_ids_are_not_errors():
    bank = default_bank()
    assert bank.find("nope") is None
    assert bank.children("nope") == []
    assert bank.path("nope") == []
    assert bank.rename("nope", "x") is False
    assert bank.delete("nope") is False
    assert bank.add_node("nope", "lesson", "x") is None
    assert bank.save_question("nope", "x") is None


def test_add_rename_delete_subtree():
    bank = default_bank()
    chapter_id = bank.add_node("grade_10", "chapter", "Chương IV: Hệ thức lượng")
    lesson_id = bank.add_node(chapter_id, "lesson", "Bài 1: Giá trị lượng giác")
    assert bank.find(lesson_id).parent_id == chapter_id
    assert bank.children("grade_10")[-1].id == chapter_id

    assert bank.rename(lesson_id, "  Bài 1: Định lý côsin ")
    assert bank.find(lesson_id).title == "Bài 1: Định lý côsin"

    size = len(bank)
    assert bank.delete(chapter_id)
    assert len(bank) == size - 2
    assert bank.find(lesson_id) is None
    assert chapter_id not in [c.id for c in bank.children("grade_10")]


def test_delete_root():
    bank = default_bank()
    assert bank.delete("grade_11")
    assert [n.id for n in bank.roots()] == ["grade_10", "grade_12"]
    assert "g11_c1_l1" not in bank


def test_save_into_lessons_only():
    bank = default_bank()
    q = bank.save_question("g12_c2_l2", "Câu 1: Tính $\\log_2 8$.")
    assert q is not None
    assert bank.find("g12_c2_l2").questions == [q]
    with pytest.raises(BankError):
        bank.save_question("g12_c2", "x")
    with pytest.raises(BankError):
        bank.add_node("g12_c2", "section", "x")


def test_save_questions_skips_blank_blocks():
    bank = default_bank()
    assert bank.save_questions("g10_c1_l2", ["Câu 1: a", "  ", "Câu 2: b"]) == 2
    assert [q.content for q in bank.find("g10_c1_l2").questions] == ["Câu 1: a", "Câu 2: b"]


def test_save_figure():
    bank = default_bank()
    fig = bank.save_figure("g11_c2_l1", "Đồ thị", "\\begin{tikzpicture}\\end{tikzpicture}", original_image="AAA")
    assert fig.original_image == "AAA"
    assert bank.find("g11_c2_l1").figures[0].name == "Đồ thị"


def test_dict_form_preserves_tree_and_content():
    bank = default_bank()
    bank.save_question("g10_c3_l2", "Câu 5: $y=x^2$")
    restored = QuestionBank.from_dict(bank.to_dict())
    assert len(restored) == len(bank)
    assert restored.path("g10_c3_l2") == bank.path("g10_c3_l2")
    assert restored.find("g10_c3_l2").questions[0].content == "Câu 5: $y=x^2$"


def test_store_seeds_default_and_persists(tmp_path):
    db = tmp_path / "bank.sqlite3"
    store = BankStore(db)
    bank = store.load()
    assert bank.find("grade_12") is not None
    bank.save_question("g12_c3_l1", "Câu 1: nguyên hàm")
    store.save(bank)

    again = BankStore(db).load()
    assert [q.content for q in again.find("g12_c3_l1").questions] == ["Câu 1: nguyên hàm"]


def test_unreadable_store_falls_back_to_default(tmp_path):
    db = tmp_path / "bank.sqlite3"
    BankStore(db)
    with sqlite3.connect(str(db)) as conn:
        conn.execute(
            "INSERT INTO app_state (key, data, updated_at) VALUES ('question_bank', '{not json', 0)"
        )
    bank = BankStore(db).load()
    assert [n.id for n in bank.roots()] == ["grade_10", "grade_11", "grade_12"]
