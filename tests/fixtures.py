"""Мини‑родословные для юнит‑тестов."""
import pandas as pd

# полусибсы P1, P2 от общей матери G1 и их потомки A, B
pedigree = pd.DataFrame(
    [
        {"id": "G1", "sire_id": None, "dam_id": None},
        {"id": "P1", "sire_id": None, "dam_id": "G1"},
        {"id": "P2", "sire_id": None, "dam_id": "G1"},
        {"id": "A",  "sire_id": None, "dam_id": "P1"},
        {"id": "B",  "sire_id": None, "dam_id": "P2"},
    ]
)

# стадо: спаривание полусибсов (X), номера матерей через таблицу соответствия
herd = pd.DataFrame(
    [
        {"id": "P1", "sire_id": "0", "dam_id": "0"},
        {"id": "P2", "sire_id": "", "dam_id": ""},
        {"id": "P3", "sire_id": "0", "dam_id": " "},
        {"id": "P4", "sire_id": "0", "dam_id": "0"},
        {"id": "Y", "sire_id": "P1", "dam_id": "P2"},
        {"id": "Z", "sire_id": "P1", "dam_id": "P3"},
        {"id": "X", "sire_id": "Y", "dam_id": "Z"},
        {"id": "mapped_dam_standard", "sire_id": "P1", "dam_id": "P2"},
        {"id": "W", "sire_id": "P4", "dam_id": "COW-17"},
        {"id": "HOCHNF37XC010T000XXX", "sire_id": "P1", "dam_id": "P2"},
        {"id": "HOCHNF37XC010X000001", "sire_id": "HO840M3234522255", "dam_id": "211558"},
        {"id": "HOCHNF37XC010X000034", "sire_id": "HO840M3234522255", "dam_id": "0"},
    ]
)

id_mapping = {
    "COW-17": "mapped_dam_standard",
    "211558": "HOCHNF37XC010T000XXX",
}

# A ← B ← A: ошибка ввода, зацикленная родословная
cyclic = {
    "A": ("B", "D"),
    "B": ("A", "D"),
    "D": (None, None),
}
