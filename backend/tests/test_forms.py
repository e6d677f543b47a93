from datetime import date, timedelta

import pytest

from classboard.sync import forms
from classboard.sync.errors import ValidationFailed

TODAY = date(2026, 3, 10)


def _schedule(**overrides):
    data = {
        "title": "Tugas Algoritma",
        "description": "Kerjakan soal 1-10",
        "schedule_date": TODAY + timedelta(days=1),
        "schedule_time": "09:30",
        "type": "homework",
    }
    data.update(overrides)
    return data


def test_valid_schedule():
    assert forms.validate_schedule(_schedule(), today=TODAY) == {}


@pytest.mark.parametrize(
    "overrides, field, message",
    [
        ({"title": "  "}, "title", "Judul tidak boleh kosong"),
        ({"title": "PR"}, "title", "Judul minimal 3 karakter"),
        ({"title": "x" * 101}, "title", "Judul maksimal 100 karakter"),
        ({"description": "abc"}, "description", "Deskripsi minimal 5 karakter"),
        ({"description": "x" * 501}, "description", "Deskripsi maksimal 500 karakter"),
        ({"schedule_date": None}, "schedule_date", "Tanggal tidak boleh kosong"),
        ({"schedule_date": TODAY - timedelta(days=1)}, "schedule_date", "Tanggal tidak boleh di masa lalu"),
        ({"schedule_date": date(2027, 3, 11)}, "schedule_date", "Tanggal tidak boleh lebih dari 1 tahun ke depan"),
        ({"schedule_time": ""}, "schedule_time", "Waktu tidak boleh kosong"),
        ({"type": "quiz"}, "type", "Jenis kegiatan tidak valid"),
    ],
)
def test_schedule_rules(overrides, field, message):
    assert forms.validate_schedule(_schedule(**overrides), today=TODAY)[field] == message


def test_schedule_today_and_one_year_ahead_are_allowed():
    assert forms.validate_schedule(_schedule(schedule_date=TODAY), today=TODAY) == {}
    assert forms.validate_schedule(_schedule(schedule_date="2027-03-10"), today=TODAY) == {}


def test_one_year_after_leap_day():
    assert forms.one_year_after(date(2028, 2, 29)) == date(2029, 2, 28)


def _class(**overrides):
    data = {
        "name": "R.1.H",
        "description": "Kelas reguler pagi",
        "member_limit": 30,
        "prodi": "Teknik Informatika",
    }
    data.update(overrides)
    return data


def test_valid_class():
    assert forms.validate_class(_class(), existing_names=["R.2.H"]) == {}


@pytest.mark.parametrize(
    "overrides, field, message",
    [
        ({"name": "AB"}, "name", "Nama kelas minimal 3 karakter"),
        ({"name": "x" * 51}, "name", "Nama kelas maksimal 50 karakter"),
        ({"description": "pendek"}, "description", "Deskripsi minimal 10 karakter"),
        ({"member_limit": 4}, "member_limit", "Batas anggota minimal 5 orang"),
        ({"member_limit": 101}, "member_limit", "Batas anggota maksimal 100 orang"),
        ({"member_limit": None}, "member_limit", "Batas anggota minimal 5 orang"),
        ({"prodi": " "}, "prodi", "Program studi harus dipilih"),
    ],
)
def test_class_rules(overrides, field, message):
    assert forms.validate_class(_class(**overrides))[field] == message


def test_class_name_must_be_unique_ignoring_case():
    errors = forms.validate_class(_class(name="r.1.h"), existing_names=["R.1.H"])
    assert errors == {"name": "Nama kelas sudah digunakan, pilih nama lain"}


def test_settings_and_profile_rules():
    assert forms.validate_class_settings({"name": "", "description": "ok"}) == {
        "name": "Nama kelas tidak boleh kosong"
    }
    assert forms.validate_profile({"full_name": "   "}) == {"full_name": "Nama lengkap tidak boleh kosong"}
    assert forms.validate_role("admin") == {"role": "Role tidak valid"}
    assert forms.validate_role("member") == {}


def test_require_valid_raises():
    with pytest.raises(ValidationFailed) as excinfo:
        forms.require_valid({"title": "Judul tidak boleh kosong"})
    assert excinfo.value.errors == {"title": "Judul tidak boleh kosong"}
    forms.require_valid({})


@pytest.mark.parametrize(
    "schedule_date, expected",
    [
        (TODAY - timedelta(days=2), {}),
        (TODAY - timedelta(days=30), {}),
        (TODAY + timedelta(days=400), {}),
        (TODAY - timedelta(days=31), {"schedule_date": "Tanggal terlalu jauh di masa lalu"}),
        (None, {"schedule_date": "Tanggal tidak boleh kosong"}),
    ],
)
def test_schedule_edit_dates(schedule_date, expected):
    errors = forms.validate_schedule_edit(_schedule(schedule_date=schedule_date), today=TODAY)
    assert errors == expected


def test_schedule_edit_keeps_field_rules():
    errors = forms.validate_schedule_edit(_schedule(title="PR", schedule_time=""), today=TODAY)
    assert errors == {"title": "Judul minimal 3 karakter", "schedule_time": "Waktu tidak boleh kosong"}
