"""Unit tests for the tune type registry and LayoutConfig."""

import pytest

from tuneconverter.errors import MalformedTitleError
from tuneconverter.tune_types import LayoutConfig, TuneType, tune_type_spec


@pytest.mark.parametrize(
    ("tune_type", "bar_length", "line_length", "page_width"),
    [
        (TuneType.POLKA, 2, 4, 13),
        (TuneType.SLIPJIG, 3, 3, 14),
        (TuneType.JIG, 3, 4, 17),
        (TuneType.REEL, 4, 4, 21),
        (TuneType.WALTZ, 6, 4, 29),
    ],
)
def test_registry_geometry(
    tune_type: TuneType, bar_length: int, line_length: int, page_width: int
) -> None:
    spec = tune_type_spec(tune_type)
    assert (spec.bar_length, spec.line_length, spec.page_width) == (
        bar_length,
        line_length,
        page_width,
    )


def test_every_tune_type_is_registered() -> None:
    for tune_type in TuneType:
        assert tune_type_spec(tune_type).bar_length > 0


def test_page_width_fits_a_full_line() -> None:
    # A line of bars plus one space per bar and a margin note fits the page width.
    for tune_type in TuneType:
        spec = tune_type_spec(tune_type)
        assert spec.page_width >= spec.line_length * (spec.bar_length + 1) + 1


def test_only_reels_are_padded() -> None:
    padded = [t for t in TuneType if tune_type_spec(t).padded]
    assert padded == [TuneType.REEL]


@pytest.mark.parametrize(
    ("name", "expected"),
    [("Jig", TuneType.JIG), ("reel", TuneType.REEL), ("Slip-Jig", TuneType.SLIPJIG)],
)
def test_from_name(name: str, expected: TuneType) -> None:
    assert TuneType.from_name(name) is expected


def test_from_name_unknown() -> None:
    with pytest.raises(MalformedTitleError):
        TuneType.from_name("Tango")


def test_layout_config_for_tune_type() -> None:
    layout = LayoutConfig.for_tune_type(TuneType.SLIPJIG)
    assert layout.bar_length == 3
    assert layout.line_length == 3
    assert layout.page_width_notes == 14
    assert layout.tune_type is TuneType.SLIPJIG


def test_notes_consumed_is_informational() -> None:
    assert [tune_type_spec(t).notes_consumed for t in (TuneType.POLKA, TuneType.JIG, TuneType.REEL)] == [
        2,
        3,
        4,
    ]
