import pytest

from classboard.sync.errors import (
    ErrorKind,
    StoreError,
    ValidationFailed,
    class_full_error,
    classify,
    translate,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("duplicate key value violates unique constraint", "Data sudah ada"),
        ('ERROR: duplicate key value violates unique constraint "uq_class_members_user_class"', "Data sudah ada"),
        ("insert or update violates foreign key constraint", "Data terkait tidak ditemukan"),
        ("null value violates not-null constraint", "Data wajib tidak boleh kosong"),
        ("permission denied: not a class member", "Tidak memiliki izin untuk aksi ini"),
        ("Kelas sudah penuh", "Kelas sudah mencapai batas maksimal anggota"),
        ("Something unexpected", "Something unexpected"),
        (None, "Terjadi kesalahan"),
    ],
)
def test_translate(raw, expected):
    assert translate(raw) == expected


def test_classify_unique_violation():
    error = classify(409, {"detail": "duplicate key value violates unique constraint", "code": "23505"})
    assert error.kind is ErrorKind.CONSTRAINT_VIOLATION
    assert error.is_duplicate
    assert error.user_message == "Data sudah ada"


def test_class_full_keeps_its_message():
    error = classify(409, {"detail": "Kelas sudah penuh. Batas maksimal 5 anggota.", "code": "CLASS_FULL"})
    assert error.kind is ErrorKind.CAPACITY_EXCEEDED
    assert error.user_message == "Kelas sudah penuh. Batas maksimal 5 anggota."
    assert class_full_error(5).user_message == error.user_message


@pytest.mark.parametrize(
    "status, kind",
    [(404, ErrorKind.NOT_FOUND), (401, ErrorKind.UNAUTHORIZED), (403, ErrorKind.UNAUTHORIZED), (500, ErrorKind.UNKNOWN)],
)
def test_classify_by_status(status, kind):
    assert classify(status, {"detail": "x"}).kind is kind


def test_classify_validation_detail_list():
    error = classify(422, {"detail": [{"msg": "Field required", "loc": ["body", "title"]}]})
    assert error.kind is ErrorKind.VALIDATION
    assert error.message == "Field required"


def test_classify_non_json_body():
    error = classify(502, "Bad Gateway")
    assert error.kind is ErrorKind.UNKNOWN
    assert error.user_message == "Bad Gateway"


def test_validation_failed_uses_first_field_message():
    error = ValidationFailed({"title": "Judul tidak boleh kosong", "time": "Waktu tidak boleh kosong"})
    assert isinstance(error, StoreError)
    assert error.user_message == "Judul tidak boleh kosong"
    assert error.errors["time"] == "Waktu tidak boleh kosong"
