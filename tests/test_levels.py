"""Tests for the level table and resolver."""

import pytest

from chorequest.engine.levels import LEVEL_TIERS, LevelTier, resolve_level, table_as_dicts


class TestResolveLevel:
    """Tests for resolve_level."""

    def test_zero_points_is_level_one(self):
        progress = resolve_level(0)
        assert (progress.level, progress.level_points, progress.points_to_next_level) == (1, 0, 25)

    def test_within_first_tier(self):
        progress = resolve_level(10)
        assert (progress.level, progress.level_points, progress.points_to_next_level) == (1, 10, 15)

    def test_exact_threshold_reaches_level(self):
        progress = resolve_level(75)
        assert (progress.level, progress.level_points, progress.points_to_next_level) == (3, 0, 75)

    def test_top_tier_has_nothing_to_next(self):
        progress = resolve_level(6000)
        assert progress.level == 10
        assert progress.level_points == 1000
        assert progress.points_to_next_level == 0

    def test_empty_table_uses_default(self):
        progress = resolve_level(500, tiers=())
        assert (progress.level, progress.level_points, progress.points_to_next_level) == (1, 0, 25)

    def test_custom_table(self):
        tiers = (LevelTier(1, 0), LevelTier(2, 100))
        progress = resolve_level(150, tiers=tiers)
        assert (progress.level, progress.level_points, progress.points_to_next_level) == (2, 50, 0)

    @pytest.mark.parametrize('points', [0, 1, 24, 25, 299, 300, 1999, 4999, 5000, 10 ** 6])
    def test_level_within_bounds(self, points):
        assert 1 <= resolve_level(points).level <= 10


class TestLevelTable:
    """Tests for the shared level table."""

    def test_thresholds_ascend(self):
        thresholds = [t.points_required for t in LEVEL_TIERS]
        assert thresholds == sorted(thresholds)
        assert thresholds[0] == 0

    def test_serialized_table(self):
        table = table_as_dicts()
        assert table[1] == {'level': 2, 'points_required': 25}
        assert len(table) == len(LEVEL_TIERS)

    def test_levels_endpoint(self, client):
        response = client.get('/api/levels')
        assert response.status_code == 200
        data = response.get_json()['data']
        assert data['version'] == 1
        assert data['levels'][-1] == {'level': 10, 'points_required': 5000}
