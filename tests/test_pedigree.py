import logging

import pandas as pd
import pytest

from coancestry.pedigree import (
    Animal,
    clean_field,
    load_id_mapping,
    normalize_id,
    pedigree_from_frame,
)
from .fixtures import herd, id_mapping


@pytest.mark.parametrize("raw", [None, "", "   ", "0", " 0 ", float("nan"), pd.NA])
def test_normalize_missing(raw):
    assert normalize_id(raw) is None


def test_normalize_keeps_token_as_is():
    # "#" в номере – часть номера; комментарии режет только загрузчик таблиц
    assert normalize_id(" HO#1 ") == "HO#1"
    assert clean_field(" HO840M # bought 2019") == "HO840M"
    assert normalize_id("ho840m") == "ho840m"
    assert clean_field("00") == "00"


def test_animal_create():
    assert Animal.create(" X ", "0", "D1") == Animal("X", None, "D1")


def test_pedigree_from_frame_applies_mapping():
    ped = pedigree_from_frame(herd, id_mapping=id_mapping)
    assert len(ped) == len(herd)
    assert ped["W"] == Animal("W", "P4", "mapped_dam_standard")
    assert ped["P3"] == Animal("P3", None, None)
    # отец не из таблицы соответствия – номер как есть
    assert ped["HOCHNF37XC010X000001"].sire_id == "HO840M3234522255"


def test_pedigree_from_frame_skips_and_overwrites(caplog):
    df = pd.DataFrame(
        [
            {"id": "# header note", "sire_id": "", "dam_id": ""},
            {"id": "  ", "sire_id": "S", "dam_id": "D"},
            {"id": "C", "sire_id": "S", "dam_id": "D"},
            {"id": "C # retyped", "sire_id": "S2", "dam_id": "D"},
        ]
    )
    with caplog.at_level(logging.WARNING, logger="coancestry.pedigree"):
        ped = pedigree_from_frame(df)
    assert ped == {"C": Animal("C", "S2", "D")}
    messages = [r.getMessage() for r in caplog.records]
    assert any("empty animal id" in m for m in messages)
    assert any("duplicate animal id 'C'" in m for m in messages)


def test_pedigree_from_frame_custom_columns():
    df = pd.DataFrame({"standard_id": ["C"], "sire": ["S"], "dam": ["0"]})
    ped = pedigree_from_frame(df, id_col="standard_id", sire_col="sire", dam_col="dam")
    assert ped["C"] == Animal("C", "S", None)


def test_missing_column():
    with pytest.raises(ValueError, match="sire_id"):
        pedigree_from_frame(pd.DataFrame({"id": ["C"], "dam_id": ["D"]}))


def test_load_id_mapping(tmp_path, caplog):
    path = tmp_path / "id_mapping.csv"
    path.write_text(
        "ear_tag,internal_id,standard_id\n"
        "E1,211558,HOCHNF37XC010T000XXX # checked\n"
        "E2,COW-17,mapped_dam_standard\n"
        "E3,,ORPHAN\n"
        "E4,COW-17,other_standard\n"
    )
    with caplog.at_level(logging.WARNING, logger="coancestry.pedigree"):
        mapping = load_id_mapping(str(path))
    assert mapping == {"211558": "HOCHNF37XC010T000XXX", "COW-17": "other_standard"}
    assert len(caplog.records) == 2
