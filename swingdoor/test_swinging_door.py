"""
旋转门压缩算法单元测试
覆盖开门/关门判定、两种遍历方式、最大/最小间隔和迭代器协议
"""

import math
import random
import unittest
from datetime import timedelta

import pandas as pd

from swingdoor import DataPoint, SwingingDoorCompression, ObjectDisposedError
from swingdoor.algorithms.swinging_door import compress


def _points(pairs):
    return [DataPoint(float(x), float(y)) for x, y in pairs]


def _pairs(points):
    return [(p.x, p.y) for p in points]


def _run_indexed(compression, pairs):
    return _pairs(compression.process(_points(pairs)))


def _run_sequential(compression, pairs):
    # 生成器只能前向读取一次，必须走顺序遍历
    return _pairs(compression.process(p for p in _points(pairs)))


def _random_walk(seed, n_points=300, step_choices=None):
    rng = random.Random(seed)
    x, y = 0.0, 0.0
    points = []
    for _ in range(n_points):
        points.append(DataPoint(x, y))
        x += rng.choice(step_choices) if step_choices else rng.uniform(0.1, 2.0)
        y += rng.gauss(0.0, 1.0)
    return points


class TestDataPoint(unittest.TestCase):
    """数据点斜率计算测试"""

    def test_gradient(self):
        a = DataPoint(0.0, 0.0)
        b = DataPoint(2.0, 4.0)
        self.assertEqual(a.gradient(b), 2.0)
        self.assertEqual(a.gradient(b, 1.0), 2.5)
        self.assertEqual(a.gradient(b, -1.0), 1.5)

    def test_gradient_with_duplicated_x(self):
        """x重复时按IEEE 754返回无穷或nan，不抛异常"""
        a = DataPoint(1.0, 1.0)
        self.assertEqual(a.gradient(DataPoint(1.0, 3.0)), math.inf)
        self.assertEqual(a.gradient(DataPoint(1.0, -3.0)), -math.inf)
        self.assertTrue(math.isnan(a.gradient(DataPoint(1.0, 1.0))))

    def test_timestamp_round_trip(self):
        p = DataPoint.from_timestamp("2021-01-01 00:01:00", 3)
        self.assertEqual(p.x, pd.Timestamp("2021-01-01").timestamp() + 60)
        self.assertEqual(p.timestamp, pd.Timestamp("2021-01-01 00:01:00"))


class TestSwingingDoorConfiguration(unittest.TestCase):
    """参数校验测试"""

    def test_defaults(self):
        compression = SwingingDoorCompression(1.0)
        self.assertEqual(compression.compression_deviation, 1.0)
        self.assertIsNone(compression.max_delta_x)
        self.assertIsNone(compression.min_delta_x)

    def test_gaps_are_kept(self):
        compression = SwingingDoorCompression(0.5, max_delta_x=10, min_delta_x=2)
        self.assertEqual(compression.max_delta_x, 10.0)
        self.assertEqual(compression.min_delta_x, 2.0)

    def test_negative_deviation_rejected(self):
        with self.assertRaises(ValueError):
            SwingingDoorCompression(-0.1)

    def test_nan_deviation_rejected(self):
        with self.assertRaises(ValueError):
            SwingingDoorCompression(float('nan'))

    def test_negative_gaps_rejected(self):
        with self.assertRaises(ValueError):
            SwingingDoorCompression(1.0, max_delta_x=-1)
        with self.assertRaises(ValueError):
            SwingingDoorCompression(1.0, min_delta_x=-1)

    def test_min_gap_larger_than_max_gap_is_allowed(self):
        with self.assertLogs('swingdoor.algorithms.swinging_door', level='WARNING'):
            compression = SwingingDoorCompression(1.0, max_delta_x=1, min_delta_x=5)
        self.assertEqual(compression.min_delta_x, 5.0)

    def test_from_timedelta(self):
        compression = SwingingDoorCompression.from_timedelta(1.0, timedelta(hours=1), "30s")
        self.assertEqual(compression.max_delta_x, 3600.0)
        self.assertEqual(compression.min_delta_x, 30.0)

        compression = SwingingDoorCompression.from_timedelta(1.0, pd.Timedelta(minutes=5))
        self.assertEqual(compression.max_delta_x, 300.0)
        self.assertIsNone(compression.min_delta_x)

    def test_none_input_rejected(self):
        with self.assertRaises(TypeError):
            SwingingDoorCompression(1.0).process(None)


class TestSwingingDoorScenarios(unittest.TestCase):
    """典型输入的压缩结果，两种遍历方式都要验证"""

    def assertBothStrategies(self, compression, pairs, expected):
        self.assertEqual(_run_indexed(compression, pairs), expected)
        self.assertEqual(_run_sequential(compression, pairs), expected)

    def test_collinear_points_inside_door(self):
        pairs = [(0, 0), (1, 0.5), (2, 1), (3, 1.5)]
        self.assertBothStrategies(SwingingDoorCompression(1.0), pairs, [(0, 0), (3, 1.5)])

    def test_spike_archives_snapshot_and_new_anchor(self):
        pairs = [(0, 0), (1, 5), (2, 0)]
        self.assertBothStrategies(SwingingDoorCompression(1.0), pairs, [(0, 0), (1, 5), (2, 0)])

    def test_max_gap_forces_archive(self):
        pairs = [(0, 0), (10, 0)]
        compression = SwingingDoorCompression(1.0, max_delta_x=5)
        self.assertBothStrategies(compression, pairs, [(0, 0), (10, 0)])

    def test_min_gap_skips_close_samples(self):
        pairs = [(0, 0), (0.5, 10), (0.7, 10), (3, 10)]
        compression = SwingingDoorCompression(1.0, min_delta_x=2)
        self.assertBothStrategies(compression, pairs, [(0, 0), (0.5, 10), (3, 10)])

    def test_single_point(self):
        self.assertBothStrategies(SwingingDoorCompression(1.0), [(5, 5)], [(5, 5)])

    def test_empty_input(self):
        compression = SwingingDoorCompression(1.0)
        self.assertEqual(list(compression.process([])), [])
        self.assertEqual(list(compression.process(iter([]))), [])

    def test_two_points(self):
        self.assertBothStrategies(SwingingDoorCompression(1.0), [(0, 0), (1, 100)], [(0, 0), (1, 100)])

    def test_forced_archive_does_not_emit_snapshot(self):
        pairs = [(x, 0) for x in range(36)]
        compression = SwingingDoorCompression(1.0, max_delta_x=10)
        expected = [(0, 0), (10, 0), (20, 0), (30, 0), (35, 0)]
        self.assertBothStrategies(compression, pairs, expected)

    def test_step_without_min_gap(self):
        pairs = [(0, 0), (1, 0), (2, 0)] + [(x, 5) for x in range(3, 11)]
        compression = SwingingDoorCompression(0.5)
        self.assertBothStrategies(compression, pairs, [(0, 0), (2, 0), (3, 5), (10, 5)])

    def test_step_with_min_gap(self):
        """越界后与快照x距离不超过min_delta_x的点全部跳过"""
        pairs = [(0, 0), (1, 0), (2, 0)] + [(x, 5) for x in range(3, 11)]
        compression = SwingingDoorCompression(0.5, min_delta_x=3)
        self.assertBothStrategies(compression, pairs, [(0, 0), (2, 0), (6, 5), (10, 5)])

    def test_min_gap_keeps_violating_point_beyond_gap(self):
        pairs = [(0, 0), (1, 0), (2, 10), (3, 10)]
        compression = SwingingDoorCompression(1.0, min_delta_x=0.5)
        self.assertBothStrategies(compression, pairs, [(0, 0), (1, 0), (2, 10), (3, 10)])

    def test_min_gap_reaching_end_of_input(self):
        pairs = [(0, 0), (1, 0), (2, 10), (2.5, 10)]
        compression = SwingingDoorCompression(1.0, min_delta_x=5)
        self.assertBothStrategies(compression, pairs, [(0, 0), (1, 0), (2.5, 10)])

    def test_forced_archive_skips_from_snapshot(self):
        """强制保留后，最小间隔以旧快照的x为基准，而不是门轴"""
        pairs = [(x, 0) for x in range(12)]
        compression = SwingingDoorCompression(100.0, max_delta_x=3, min_delta_x=2)
        self.assertBothStrategies(compression, pairs, [(0, 0), (5, 0), (10, 0), (11, 0)])

    def test_duplicated_last_point_not_emitted_twice(self):
        pairs = [(0, 0), (1, 5), (2, 0), (2, 0)]
        self.assertBothStrategies(SwingingDoorCompression(1.0), pairs, [(0, 0), (1, 5), (2, 0)])

    def test_zero_deviation_keeps_every_bend(self):
        pairs = [(0, 0), (1, 1), (2, 3), (3, 6)]
        self.assertBothStrategies(SwingingDoorCompression(0.0), pairs,
                                  [(0, 0), (1, 1), (2, 3), (3, 6)])

    def test_door_narrows(self):
        iterator = SwingingDoorCompression(1.0).process(_points([(0, 0), (1, 0.5), (2, 1), (3, 1.5)]))
        self.assertEqual(next(iterator), DataPoint(0, 0))
        self.assertEqual(iterator.door, (-math.inf, math.inf))

        self.assertEqual(next(iterator), DataPoint(3, 1.5))
        slope_min, slope_max = iterator.door
        self.assertAlmostEqual(slope_min, 0.5 / 3)
        self.assertAlmostEqual(slope_max, 2.5 / 3)


class TestIteratorProtocol(unittest.TestCase):
    """惰性迭代器协议测试"""

    def setUp(self):
        self.compression = SwingingDoorCompression(1.0)
        self.data = _points([(0, 0), (1, 5), (2, 0)])

    def test_results_are_produced_lazily(self):
        def source():
            yield from self.data
            raise AssertionError("不应读取超出需要的数据")

        iterator = self.compression.process(source())
        self.assertEqual(next(iterator), DataPoint(0, 0))
        self.assertEqual(next(iterator), DataPoint(1, 5))

    def test_exhausted_iterator_is_stable(self):
        for iterator in (self.compression.process(self.data), self.compression.process(iter(self.data))):
            self.assertEqual(len(list(iterator)), 3)
            for _ in range(3):
                with self.assertRaises(StopIteration):
                    next(iterator)
            self.assertEqual(iterator.current, DataPoint(2, 0))

    def test_closed_iterator_fails(self):
        for iterator in (self.compression.process(self.data), self.compression.process(iter(self.data))):
            next(iterator)
            iterator.close()
            self.assertTrue(iterator.closed)
            with self.assertRaises(ObjectDisposedError):
                next(iterator)
            with self.assertRaises(ObjectDisposedError):
                next(iterator)

    def test_close_releases_generator_source(self):
        released = []

        def source():
            try:
                yield from self.data
            finally:
                released.append(True)

        iterator = self.compression.process(source())
        next(iterator)
        iterator.close()
        self.assertEqual(released, [True])

    def test_context_manager_closes(self):
        with self.compression.process(self.data) as iterator:
            self.assertEqual(iterator.to_list(), self.data)
        with self.assertRaises(ObjectDisposedError):
            next(iterator)

    def test_current_index(self):
        for iterator in (self.compression.process(self.data), self.compression.process(iter(self.data))):
            self.assertEqual(iterator.current_index, -1)
            indices = [iterator.current_index for _ in iterator]
            self.assertEqual(indices, [0, 1, 2])

    def test_new_process_call_restarts(self):
        first = self.compression.process(self.data).to_list()
        second = self.compression.process(self.data).to_list()
        self.assertEqual(first, second)

    def test_to_dataframe(self):
        df = self.compression.process(self.data).to_dataframe()
        self.assertEqual(list(df.columns), ['X', 'Y'])
        self.assertEqual(df['Y'].tolist(), [0.0, 5.0, 0.0])

    def test_index_desync_is_reported(self):
        iterator = self.compression.process(self.data)
        next(iterator)
        iterator._last_archived_index = 10
        with self.assertRaises(IndexError):
            next(iterator)


class TestSwingingDoorProperties(unittest.TestCase):
    """随机数据上的性质测试"""

    PARAMS = [
        {'compression_deviation': 0.5},
        {'compression_deviation': 2.0},
        {'compression_deviation': 1.0, 'max_delta_x': 8.0},
        {'compression_deviation': 1.0, 'min_delta_x': 3.0},
        {'compression_deviation': 1.5, 'max_delta_x': 10.0, 'min_delta_x': 2.0},
        {'compression_deviation': 0.0},
    ]

    def test_strategies_produce_identical_output(self):
        for seed in range(5):
            for steps in (None, [0.0, 0.5, 1.0, 2.0]):
                data = _random_walk(seed, step_choices=steps)
                for params in self.PARAMS:
                    indexed = SwingingDoorCompression(**params).process(data).to_list()
                    sequential = SwingingDoorCompression(**params).process(iter(data)).to_list()
                    self.assertEqual(indexed, sequential, f"seed={seed}, params={params}")

    def test_first_and_last_points_kept(self):
        for seed in range(5):
            data = _random_walk(seed)
            for params in self.PARAMS:
                result = SwingingDoorCompression(**params).process(data).to_list()
                self.assertEqual(result[0], data[0])
                self.assertEqual(result[-1], data[-1])
                self.assertLessEqual(len(result), len(data))

    def test_x_strictly_increasing(self):
        for seed in range(5):
            data = _random_walk(seed)
            for params in self.PARAMS:
                xs = [p.x for p in SwingingDoorCompression(**params).process(data)]
                self.assertTrue(all(a < b for a, b in zip(xs, xs[1:])))

    def test_discarded_points_within_deviation(self):
        for seed in range(5):
            data = _random_walk(seed)
            for deviation in (0.25, 1.0, 3.0):
                iterator = SwingingDoorCompression(deviation).process(data)
                indices = [iterator.current_index for _ in iterator]

                for start, end in zip(indices, indices[1:]):
                    a, b = data[start], data[end]
                    slope = a.gradient(b)
                    for p in data[start + 1:end]:
                        y_hat = a.y + slope * (p.x - a.x)
                        self.assertLessEqual(abs(p.y - y_hat), deviation + 1e-9)

    def test_max_gap_bound(self):
        data = [DataPoint(float(x), 0.0) for x in range(100)]
        result = SwingingDoorCompression(10.0, max_delta_x=7.0).process(data).to_list()
        for a, b in zip(result, result[1:]):
            self.assertLessEqual(b.x - a.x, 7.0)

    def test_min_gap_between_snapshot_and_anchor(self):
        for seed in range(5):
            data = _random_walk(seed)
            result = SwingingDoorCompression(0.5, min_delta_x=4.0).process(data).to_list()

            # 第一个点之后依次是（快照, 新门轴）对，末尾可能还有一个补充输出的最后一个点
            body = result[1:]
            if len(body) % 2 == 1:
                body = body[:-1]
            self.assertGreater(len(body), 0)

            for snapshot, anchor in zip(body[0::2], body[1::2]):
                self.assertTrue(anchor.x - snapshot.x > 4.0 or anchor == data[-1])


class TestCompressPlugin(unittest.TestCase):
    """DataFrame接口测试"""

    def setUp(self):
        self.df = pd.DataFrame({'X': [0.0, 1.0, 2.0, 3.0, 4.0], 'Y': [0.0, 0.1, 5.0, 0.0, 0.1]})

    def test_orig_idx(self):
        result = compress(self.df, {'deviation': 1.0})
        self.assertIn('orig_idx', result.columns)
        self.assertEqual(result['orig_idx'].tolist()[0], 0)
        self.assertEqual(result['orig_idx'].tolist()[-1], 4)
        for _, row in result.iterrows():
            self.assertEqual(row['Y'], self.df.loc[int(row['orig_idx']), 'Y'])

    def test_strategies_match(self):
        indexed = compress(self.df, {'deviation': 1.0, 'strategy': 'indexed'})
        sequential = compress(self.df, {'deviation': 1.0, 'strategy': 'sequential'})
        pd.testing.assert_frame_equal(indexed, sequential)

    def test_unknown_strategy(self):
        with self.assertRaises(ValueError):
            compress(self.df, {'strategy': 'parallel'})

    def test_empty_frame(self):
        result = compress(pd.DataFrame(columns=['X', 'Y']), {'deviation': 1.0})
        self.assertEqual(len(result), 0)


if __name__ == '__main__':
    unittest.main(verbosity=2)
