"""Tests for pick history, scarcity and roster composition."""

from draft_tracker.catalog import PlayerCatalog
from draft_tracker.draft.draft_event import Pick
from draft_tracker.draft.draft_state_manager import (
    DraftStateManager,
    ScarcityLevel,
    classify_scarcity,
)
from draft_tracker.normalizer import Position

from fakes import make_player


def _rb_catalog(count: int = 40) -> PlayerCatalog:
    return PlayerCatalog([make_player(f"rb{i}", 'RB', float(i)) for i in range(1, count + 1)])


def test_classify_scarcity_boundaries() -> None:
    assert classify_scarcity(0) == ScarcityLevel.CRITICAL
    assert classify_scarcity(3) == ScarcityLevel.CRITICAL
    assert classify_scarcity(4) == ScarcityLevel.SCARCE
    assert classify_scarcity(8) == ScarcityLevel.SCARCE
    assert classify_scarcity(9) == ScarcityLevel.NORMAL
    assert classify_scarcity(19) == ScarcityLevel.NORMAL
    assert classify_scarcity(20) == ScarcityLevel.ABUNDANT


def test_scarcity_never_improves_as_picks_accumulate() -> None:
    manager = DraftStateManager(team_count=12, catalog=_rb_catalog())
    severities = [manager.scarcity('RB').severity]

    for pick_no in range(1, 31):
        manager.apply_picks([Pick(pick_no=pick_no, player_id=f"rb{pick_no}")])
        severities.append(manager.scarcity('RB').severity)

    assert severities == sorted(severities)
    assert severities[0] == ScarcityLevel.ABUNDANT.severity
    assert severities[-1] == ScarcityLevel.CRITICAL.severity


def test_scarcity_levels_at_thresholds() -> None:
    manager = DraftStateManager(team_count=12, catalog=_rb_catalog())
    manager.apply_picks([Pick(pick_no=i, player_id=f"rb{i}") for i in range(1, 23)])
    assert manager.scarcity('RB') == ScarcityLevel.SCARCE

    manager.apply_picks([Pick(pick_no=i, player_id=f"rb{i}") for i in range(23, 28)])
    assert manager.scarcity('RB') == ScarcityLevel.CRITICAL


def test_current_round_after_nineteen_picks_in_twelve_team_draft() -> None:
    manager = DraftStateManager(team_count=12, catalog=_rb_catalog())
    manager.apply_picks([Pick(pick_no=i, player_id=f"rb{i}") for i in range(1, 20)])

    assert manager.current_round() == 2
    assert manager.overall_pick() == 20


def test_history_is_append_only() -> None:
    manager = DraftStateManager(team_count=12, catalog=_rb_catalog())
    first = [Pick(pick_no=1, player_id='rb1'), Pick(pick_no=2, player_id='rb2')]
    manager.apply_picks(first)
    before = manager.picks

    manager.apply_picks([Pick(pick_no=3, player_id='rb3')])

    assert manager.picks[:2] == before
    assert manager.pick_count == 3
    assert isinstance(manager.picks, tuple)


def test_out_of_order_pick_is_still_appended() -> None:
    manager = DraftStateManager(team_count=12, catalog=_rb_catalog())
    manager.apply_picks([Pick(pick_no=5, player_id='rb1'), Pick(pick_no=4, player_id='rb2')])
    assert manager.pick_count == 2


def test_roster_is_estimated_when_tracked_roster_unknown() -> None:
    manager = DraftStateManager(team_count=12, catalog=_rb_catalog())
    manager.apply_picks([Pick(pick_no=i, player_id=f"rb{i}") for i in range(1, 27)])

    composition = manager.roster_composition()

    assert composition.is_estimated
    assert manager.current_round() == 3
    assert composition.count('RB') == 1
    assert composition.count('WR') == 1
    assert composition.count('QB') == 0


def test_roster_composition_counts_tracked_picks() -> None:
    catalog = PlayerCatalog([
        make_player('rb1', 'RB', 1.0),
        make_player('wr1', 'WR', 2.0),
        make_player('qb1', 'QB', 3.0),
    ])
    manager = DraftStateManager(team_count=12, catalog=catalog, tracked_roster_id=3)
    manager.apply_picks([
        Pick(pick_no=1, player_id='rb1', roster_id=3),
        Pick(pick_no=2, player_id='wr1', roster_id=4),
        Pick(pick_no=3, player_id='qb1', roster_id=3),
    ])

    composition = manager.roster_composition()

    assert not composition.is_estimated
    assert composition.count('RB') == 1
    assert composition.count('QB') == 1
    assert composition.count('WR') == 0
    assert [p.player_id for p in manager.tracked_picks()] == ['rb1', 'qb1']


def test_tracked_picks_fall_back_to_owner_id() -> None:
    manager = DraftStateManager(team_count=12, catalog=_rb_catalog(), tracked_owner_id='u7')
    manager.apply_picks([
        Pick(pick_no=1, player_id='rb1', picked_by='u7'),
        Pick(pick_no=2, player_id='rb2', picked_by='u8'),
    ])
    assert manager.roster_composition().count('RB') == 1


def test_position_resolution_chain() -> None:
    manager = DraftStateManager(team_count=12, catalog=_rb_catalog(), tracked_roster_id=1)

    from_metadata = Pick(pick_no=1, player_id='x1', roster_id=1, metadata={'position': 'DST'})
    from_name = Pick(
        pick_no=2, player_id='x2', roster_id=1,
        metadata={'first_name': 'Travis', 'last_name': 'Kelce'},
    )
    unresolved = Pick(
        pick_no=3, player_id='x3', roster_id=1,
        metadata={'first_name': 'Zzyzx', 'last_name': 'Unknownplayer'},
    )

    assert manager.resolve_position(from_metadata) == Position.DEF
    assert manager.resolve_position(from_name) == Position.TE
    assert manager.resolve_position(unresolved) is None

    manager.apply_picks([from_metadata, from_name, unresolved])
    composition = manager.roster_composition()

    assert composition.count('DEF') == 1
    assert composition.count('TE') == 1
    assert composition.uncounted == 1


def test_reset_rebuilds_scarcity() -> None:
    manager = DraftStateManager(team_count=12, catalog=_rb_catalog())
    manager.apply_picks([Pick(pick_no=i, player_id=f"rb{i}") for i in range(1, 28)])

    manager.reset()

    assert manager.pick_count == 0
    assert manager.scarcity('RB') == ScarcityLevel.ABUNDANT
    assert not manager.drafted_ids


def test_each_applied_pick_carries_scarcity_before_it_was_counted() -> None:
    manager = DraftStateManager(team_count=12, catalog=_rb_catalog())
    manager.apply_picks([Pick(pick_no=i, player_id=f"rb{i}") for i in range(1, 23)])

    applied = manager.apply_picks([Pick(pick_no=i, player_id=f"rb{i}") for i in range(23, 29)])

    assert [a.scarcity for a in applied] == [ScarcityLevel.SCARCE] * 5 + [ScarcityLevel.CRITICAL]
    assert applied[0].player.player_id == 'rb23'
    assert applied[0].position == Position.RB
    assert manager.scarcity('RB') == ScarcityLevel.CRITICAL


def test_unresolved_pick_has_no_scarcity() -> None:
    manager = DraftStateManager(team_count=12, catalog=_rb_catalog())

    applied = manager.apply_picks([
        Pick(pick_no=1, player_id='x1', metadata={'first_name': 'Zzyzx', 'last_name': 'Unknownplayer'}),
    ])

    assert applied[0].player is None
    assert applied[0].scarcity is None
