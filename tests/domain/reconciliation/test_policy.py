from __future__ import annotations

import pytest

from slabsync.domain.enums import WriteMode
from slabsync.domain.reconciliation import ModePolicy, ReconcileOptions, policy_for


@pytest.mark.parametrize(
    ("mode", "expected"),
    [
        (WriteMode.VALUE_AND_METADATA, ModePolicy(True, True, True, True)),
        (WriteMode.METADATA_ONLY, ModePolicy(True, False, False, False)),
        (WriteMode.VALUE_ONLY, ModePolicy(False, True, True, True)),
        (WriteMode.CONFIDENCE_ONLY, ModePolicy(False, True, False, True)),
    ],
)
def test_policy_for_each_mode(mode: WriteMode, expected: ModePolicy) -> None:
    assert policy_for(mode) == expected


def test_every_mode_has_a_policy() -> None:
    for mode in WriteMode:
        assert isinstance(policy_for(mode), ModePolicy)


def test_options_default_to_both_and_expose_policy() -> None:
    options = ReconcileOptions()

    assert options.write_mode is WriteMode.VALUE_AND_METADATA
    assert options.policy.fetch_metadata is True
    assert options.api_key is None
