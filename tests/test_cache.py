import logging
import threading

import numpy as np
import pytest

from livescope.core import (
    Chunk,
    DisplayCache,
    RestartPolicy,
    ScopeSettings,
    SessionState,
)


def _chunk(t, values, channels=1):
    t = np.asarray(t, dtype=float)
    samples = np.broadcast_to(np.asarray(values, dtype=float).reshape(-1, 1),
                              (len(t), channels))
    return Chunk(t, samples)


def _dense(t0, n, rate=2000.0, value=1.0, channels=1):
    return _chunk(t0 + np.arange(n) / rate, np.full(n, value), channels)


def test_dense_update_writes_from_first_slot():
    cache = DisplayCache(channel_count=1, window_width=1.0, capacity=100,
                         gap_fraction=0.1, rng=0)
    assert cache.update(_dense(0.0, 600))  # 0.3 s -> 15 min/max pairs

    values = cache.snapshot().values[:, 0]
    assert np.isfinite(values[:30]).all()
    assert np.isnan(values[30:]).all()
    assert not cache.sparse


def test_gap_after_new_data_is_blank():
    cache = DisplayCache(channel_count=1, window_width=1.0, capacity=100,
                         gap_fraction=0.1, rng=0)
    cache.update(_dense(0.0, 1980))  # first pass fills slots 0..97
    cache.update(_dense(1.0, 600))   # second pass rewrites slots 0..29

    values = cache.snapshot().values[:, 0]
    assert np.isfinite(values[0:30]).all()
    assert np.isnan(values[30:40]).all()
    assert np.isfinite(values[40:98]).all()


def test_wrap_around_keeps_adjacent_rows_together():
    cache = DisplayCache(channel_count=1, window_width=1.0, capacity=100, rng=0)
    t = 0.95 + np.arange(200) / 2000.0
    assert cache.update(_chunk(t, t))  # ramp: value equals its timestamp

    values = cache.snapshot().values[:, 0]
    written = values[[95, 96, 97, 98, 99, 0, 1, 2, 3, 4]]
    assert np.isfinite(written).all()
    # Ramp keeps rising across the ring boundary: no jump back to old rows
    assert np.all(np.diff(written) >= 0)
    assert written[0] == t[0]
    assert written[-1] == t[-1]
    # Blank gap follows the wrapped region
    assert np.isnan(values[5:10]).all()


def test_sparse_update_sets_flag_and_keeps_old_markers():
    cache = DisplayCache(channel_count=1, window_width=1.0, capacity=100, rng=0)
    cache.update(_chunk([0.50, 0.60], [1.0, 2.0]))
    cache.update(_chunk([0.65, 0.75], [3.0, 4.0]))
    cache.update(_chunk([1.55, 1.65], [5.0, 6.0]))  # next sweep, overlaps the first

    snap = cache.snapshot()
    assert snap.sparse
    values = snap.values[:, 0]
    assert values[50] == 1.0
    assert values[55] == 5.0
    assert values[60] == 2.0
    assert values[65] == 6.0  # replaces the 0.65 marker
    assert values[75] == 4.0
    assert np.isfinite(values).sum() == 5


def test_sparse_markers_land_on_their_time_slots():
    cache = DisplayCache(channel_count=1, window_width=1.0, capacity=100, rng=0)
    cache.update(_chunk([0.02, 0.03], [0.0, 0.0]))
    cache.clear()  # next sweep starts at 0.03, off the 10 ms grid
    t = 0.03 + np.array([0.013, 0.117, 0.252, 0.388, 0.541, 0.676, 0.809, 0.944])
    assert cache.update(_chunk(t, np.arange(len(t))))

    snap = cache.snapshot()
    assert snap.sparse
    expected = [cache.slot_for_time(ti) for ti in t]
    np.testing.assert_array_equal(np.flatnonzero(np.isfinite(snap.values[:, 0])),
                                  expected)
    np.testing.assert_array_equal(snap.values[expected, 0], np.arange(len(t)))


def test_channel_scale_is_applied():
    cache = DisplayCache(channel_count=2, window_width=1.0, capacity=100,
                         channel_scale=[2.0, -0.5], rng=0)
    cache.update(_chunk([0.1, 0.2], [4.0, 4.0], channels=2))
    values = cache.snapshot().values
    assert values[10, 0] == 8.0
    assert values[10, 1] == -2.0


def test_wrong_channel_count_is_rejected(caplog):
    cache = DisplayCache(channel_count=2, window_width=1.0, capacity=100, rng=0)
    cache.update(_dense(0.0, 600, channels=2))
    before = cache.snapshot()

    with caplog.at_level(logging.WARNING):
        assert not cache.update(_dense(0.3, 600, channels=1))
    assert "expected 2" in caplog.text

    after = cache.snapshot()
    np.testing.assert_array_equal(before.values, after.values)
    assert cache.view.last_write_time == pytest.approx(0.2995)


@pytest.mark.parametrize("newdata", [
    np.empty((0, 2)),
    (np.array([0.0, 0.1, 0.1]), np.zeros((3, 1))),
    (np.array([0.0, 0.1]), np.zeros((3, 1))),
])
def test_malformed_chunks_are_rejected(newdata):
    cache = DisplayCache(channel_count=1, window_width=1.0, capacity=100, rng=0)
    assert not cache.update(newdata)
    assert cache.buffer.is_blank


def test_column_form_is_accepted():
    cache = DisplayCache(channel_count=1, window_width=1.0, capacity=100, rng=0)
    data = np.column_stack((np.linspace(0.2, 0.3, 5), np.ones(5)))
    assert cache.update(data)
    assert cache.snapshot().values[20, 0] == 1.0


def test_clear_is_idempotent():
    cache = DisplayCache(channel_count=2, window_width=1.0, capacity=100, rng=0)
    cache.update(_dense(0.0, 1000, channels=2))
    cache.clear()
    once = cache.snapshot()
    cache.clear()
    twice = cache.snapshot()

    np.testing.assert_array_equal(once.values, twice.values)
    np.testing.assert_array_equal(once.time_axis, twice.time_axis)
    assert np.isnan(twice.values).all()
    assert cache.view.origin_time == cache.view.last_write_time


def test_clear_rebases_origin_to_latest_write():
    cache = DisplayCache(channel_count=1, window_width=1.0, capacity=100, rng=0)
    cache.update(_chunk([0.10, 0.47], [1.0, 1.0]))
    cache.clear()
    cache.update(_chunk([0.57, 0.67], [2.0, 2.0]))
    # 0.57 is 0.10 s after the latest write, so slot 10
    assert cache.snapshot().values[10, 0] == 2.0


def test_zoom_round_trip_reproduces_slot_mapping():
    cache = DisplayCache(channel_count=1, window_width=1.0, capacity=1000, rng=0)
    cache.update(_chunk(np.linspace(0.3, 0.5, 20), np.ones(20)))
    assert cache.snapshot().values[300, 0] == 1.0
    assert cache.slot_for_time(0.3) == 300

    cache.zoom_time("in")
    cache.zoom_time("in")
    assert cache.window_width == 0.25
    cache.zoom_time("out")
    cache.zoom_time("out")
    assert cache.window_width == 1.0

    origin = cache.view.origin_time
    cache.update(_chunk(origin + np.linspace(0.3, 0.5, 20), np.ones(20)))
    assert cache.slot_for_time(origin + 0.3) == 300
    values = cache.snapshot().values[:, 0]
    assert values[300] == 1.0
    assert np.isnan(values[299])


def test_zoom_time_clears_and_rederives_axis():
    cache = DisplayCache(channel_count=1, window_width=2.0, capacity=100, rng=0)
    cache.update(_dense(0.0, 1000))
    cache.zoom_time("out")
    snap = cache.snapshot()
    assert snap.window_width == 4.0
    assert snap.time_axis[1] == pytest.approx(0.04)
    assert np.isnan(snap.values).all()


def test_voltage_operations_do_not_touch_buffer():
    cache = DisplayCache(channel_count=1, window_width=1.0, capacity=100,
                         voltage_half_range=2.0, rng=0)
    cache.update(_dense(0.0, 600))
    before = cache.snapshot()

    cache.zoom_voltage("in")
    cache.scroll_voltage("up")
    after = cache.snapshot()

    np.testing.assert_array_equal(before.values, after.values)
    assert after.voltage_limits == pytest.approx((-0.8, 1.2))


def test_reset_restores_initial_view_and_clears():
    cache = DisplayCache(channel_count=1, window_width=1.0, capacity=100,
                         voltage_half_range=2.0, rng=0)
    cache.zoom_time("out")
    cache.zoom_voltage("out")
    cache.scroll_voltage("down")
    cache.update(_dense(0.0, 600))

    cache.reset()
    snap = cache.snapshot()
    assert snap.window_width == 1.0
    assert snap.voltage_limits == (-2.0, 2.0)
    assert np.isnan(snap.values).all()


def test_sweep_restart_keeps_old_trace_by_default():
    cache = DisplayCache(channel_count=1, window_width=1.0, capacity=100, rng=0)
    cache.update(_chunk(np.linspace(5.5, 5.7, 5), np.ones(5)))
    cache.update(_dense(0.0, 200))  # acquisition clock restarted

    values = cache.snapshot().values[:, 0]
    assert cache.view.origin_time == 0.0
    assert np.isfinite(values[0:10]).all()
    assert np.isfinite(values[50:71]).sum() == 5


def test_sweep_restart_can_clear_old_trace():
    cache = DisplayCache(channel_count=1, window_width=1.0, capacity=100,
                         restart_policy=RestartPolicy.CLEAR, rng=0)
    cache.update(_chunk(np.linspace(5.5, 5.7, 5), np.ones(5)))
    cache.update(_dense(0.0, 200))

    values = cache.snapshot().values[:, 0]
    assert np.isfinite(values[0:10]).all()
    assert np.isnan(values[50:71]).all()


def test_snapshot_is_a_read_only_copy():
    cache = DisplayCache(channel_count=1, window_width=1.0, capacity=100, rng=0)
    snap = cache.snapshot()
    with pytest.raises(ValueError):
        snap.values[0, 0] = 1.0

    cache.update(_dense(0.0, 600))
    assert np.isnan(snap.values).all()


def test_session_state_machine():
    cache = DisplayCache(channel_count=1, window_width=1.0, capacity=100, rng=0)
    assert cache.state is SessionState.IDLE
    cache.update(_dense(0.0, 600))

    cache.start()
    assert cache.is_streaming
    assert cache.buffer.is_blank

    cache.update(_dense(0.3, 600))
    cache.stop()
    assert cache.state is SessionState.IDLE
    assert not cache.buffer.is_blank


def test_from_settings():
    settings = ScopeSettings(display_points=200, window_seconds=2.0,
                             voltage_half_range=3.0, downsample_strategy="random",
                             restart_policy="clear", channel_scales="2.0")
    cache = DisplayCache.from_settings(settings, channel_count=2, rng=0)
    assert cache.capacity == 200
    assert cache.window_width == 2.0
    assert cache.snapshot().voltage_limits == (-3.0, 3.0)
    assert cache.restart_policy is RestartPolicy.CLEAR
    np.testing.assert_array_equal(cache.view.channel_scale, [2.0, 2.0])


def test_invalid_construction():
    with pytest.raises(ValueError):
        DisplayCache(channel_count=2, channel_scale=[1.0])
    with pytest.raises(ValueError):
        DisplayCache(restart_policy="sometimes")


def test_concurrent_snapshots_never_see_partial_writes():
    cache = DisplayCache(channel_count=2, window_width=1.0, capacity=1000, rng=0)
    n = 2000
    offsets = np.linspace(0.0, 0.99, n)
    done = threading.Event()
    torn = []

    def writer():
        for k in range(1, 301):
            # Every chunk covers the same slots with one constant value
            cache.update(_chunk(k + offsets, np.full(n, float(k)), channels=2))
        done.set()

    def reader():
        while not done.is_set():
            values = cache.snapshot().values
            seen = np.unique(values[np.isfinite(values)])
            if len(seen) > 1:
                torn.append(seen)

    threads = [threading.Thread(target=writer), threading.Thread(target=reader)]
    for th in threads:
        th.start()
    for th in threads:
        th.join(timeout=30)

    assert done.is_set()
    assert torn == []
    assert np.nanmax(cache.snapshot().values) == 300.0


def test_repeated_zoom_in_keeps_a_usable_window():
    cache = DisplayCache(channel_count=1, window_width=1.0, capacity=100, rng=0)
    for _ in range(40):
        cache.zoom_time("in")
    snap = cache.snapshot()
    assert snap.window_width > 0
    assert snap.time_axis.shape == (100,)
    assert cache.update(_dense(0.0, 50, rate=1e5))
