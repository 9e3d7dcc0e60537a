"""
Test suite for the commit series collector and the report writers.
"""

import csv
import datetime
import json
import os
import shutil
import tempfile
import unittest

import yaml

from repometrics.repometrics_collector import (
    CommitRow, MetricsCollector, NoCommitsError, RollingAverage, RunResult,
    message_length, sample_commits,
)
from repometrics.repometrics_config import RepoMetricsConfig
from repometrics.repometrics_export import (
    CSV_HEADER, MetricsExporter, export_to_csv, export_to_json, export_to_yaml,
)
from repometrics.repometrics_repository import TreeEntry
from repometrics.repometrics_visualization import (
    CHART_JS_CDN, THEME_STORAGE_KEY, VisualizationGenerator, generate_visualizations,
)


UTC = datetime.timezone.utc


class HistoryRepository:
    """In-memory repository with a linear history."""

    def __init__(self, history, blobs):
        # history: list of (sha, unix time, message, [(path, blob sha), ...])
        self.history = history
        self.blobs = blobs
        self.display_name = 'example'
        self.list_calls = []

    def resolve_rev(self, branch=None):
        return branch or 'main'

    def list_commits(self, rev, first_parent=False, include_merges=False, max_commits=None):
        self.list_calls.append((rev, first_parent, include_merges, max_commits))
        commits = [c[0] for c in self.history]
        if max_commits:
            commits = commits[-max_commits:]
        return commits

    def _find(self, commit):
        for item in self.history:
            if item[0] == commit:
                return item
        raise KeyError(commit)

    def list_tree(self, commit):
        return [
            TreeEntry(mode='100644', type='blob', sha=sha, size=len(self.blobs[sha]), path=path)
            for path, sha in self._find(commit)[3]
        ]

    def read_blob(self, sha, max_bytes):
        return self.blobs[sha]

    def drain_warnings(self):
        return []

    def commit_info(self, commit):
        item = self._find(commit)
        return datetime.datetime.fromtimestamp(item[1], tz=UTC), item[2]


def make_history():
    blobs = {
        'foo1': b'def f():\n  return 1\n',
        'foo2': b'# comment\ndef f():\n  return 1\n\ndef g():\n  return 2\n',
        'test1': b'def test_one():\n  assert True\n',
        'test2': b'def test_one():\n  assert True\n\ndef test_two():\n  assert True\n',
        'readme': b'# hello\ntext\n',
    }
    history = [
        ('a' * 40, 1700000000, 'x' * 10, [('foo.py', 'foo1')]),
        ('b' * 40, 1700003600, 'y' * 20 + '\n\n', [('foo.py', 'foo1'), ('test_foo.py', 'test1')]),
        ('c' * 40, 1700007200, 'z' * 30, [
            ('foo.py', 'foo2'), ('test_foo.py', 'test2'), ('README.md', 'readme'),
        ]),
    ]
    return HistoryRepository(history, blobs)


def quiet_config(**overrides):
    config = RepoMetricsConfig(processes=1, msg_avg_window=2, progress_interval=1000)
    for key, value in overrides.items():
        setattr(config, key, value)
    return config


class TestRollingAverage(unittest.TestCase):
    """Test the rolling commit message length average."""

    def test_constant_lengths(self):
        rolling = RollingAverage(2)
        self.assertEqual([rolling.add(v) for v in (4, 4, 4)], [4, 4, 4])

    def test_window_drops_oldest(self):
        rolling = RollingAverage(2)
        self.assertEqual([rolling.add(v) for v in (10, 20, 30)], [10, 15, 25])

    def test_shorter_prefix_uses_available_samples(self):
        rolling = RollingAverage(50)
        self.assertEqual(rolling.add(3), 3)
        self.assertEqual(rolling.add(6), 4.5)

    def test_invalid_window_is_clamped(self):
        self.assertEqual(RollingAverage(0).window, 1)

    def test_matches_naive_mean(self):
        values = [5, 0, 17, 3, 3, 40, 1, 9]
        for window in (1, 3, 5, 100):
            rolling = RollingAverage(window)
            for i, value in enumerate(values):
                recent = values[max(0, i - window + 1):i + 1]
                self.assertAlmostEqual(rolling.add(value), sum(recent) / len(recent))


class TestHelpers(unittest.TestCase):
    """Test message length and sampling."""

    def test_message_length_ignores_trailing_whitespace(self):
        self.assertEqual(message_length('Fix bug\n\n'), 7)
        self.assertEqual(message_length('Fix bug\n\nDetails here.\n'), 22)
        self.assertEqual(message_length(''), 0)

    def test_message_length_counts_characters(self):
        self.assertEqual(message_length('café'), 4)

    def test_commit_row_docstring(self):
        self.assertTrue(CommitRow.__doc__.startswith('One row of the output series'))

    def test_sample_every(self):
        commits = list('abcdefg')
        self.assertEqual(sample_commits(commits, 1), commits)
        self.assertEqual(sample_commits(commits, 3), ['a', 'd', 'g'])
        self.assertEqual(sample_commits(commits, 100), ['a'])
        self.assertEqual(sample_commits([], 2), [])


class TestMetricsCollector(unittest.TestCase):
    """Test the full run over an in-memory history."""

    def test_series(self):
        repo = make_history()
        result = MetricsCollector(repo, quiet_config()).collect()

        self.assertEqual(result.rev, 'main')
        self.assertEqual(result.display_name, 'example')
        self.assertEqual(len(result.rows), 3)

        first, second, third = result.rows
        self.assertEqual((first.non_test_loc, first.total_tests, first.doc_loc), (2, 0, 0))
        self.assertEqual((second.non_test_loc, second.total_tests, second.doc_loc), (2, 1, 0))
        self.assertEqual((third.non_test_loc, third.total_tests, third.doc_loc), (4, 2, 2))

        self.assertEqual([r.commit_msg_len for r in result.rows], [10, 20, 30])
        self.assertEqual([r.commit_msg_len_avg for r in result.rows], [10, 15, 25])
        self.assertEqual(first.short_sha, 'a' * 12)
        self.assertEqual(first.iso_when, '2023-11-14T22:13:20Z')

    def test_rows_are_chronological(self):
        result = MetricsCollector(make_history(), quiet_config()).collect()
        stamps = [r.timestamp for r in result.rows]
        self.assertEqual(stamps, sorted(stamps))

    def test_blob_reuse_is_reported(self):
        result = MetricsCollector(make_history(), quiet_config()).collect()
        # foo1, test1, foo2, test2 and readme are each computed once
        self.assertEqual(result.blobs_computed, 5)
        self.assertEqual(result.blob_cache_hits, 1)

    def test_filters_are_passed_through(self):
        repo = make_history()
        config = quiet_config(branch='release', first_parent=True, max_commits=2)
        result = MetricsCollector(repo, config).collect()
        self.assertEqual(repo.list_calls, [('release', True, False, 2)])
        self.assertEqual(result.rev, 'release')
        self.assertEqual(len(result.rows), 2)

    def test_sampling_keeps_first_commit(self):
        result = MetricsCollector(make_history(), quiet_config(sample_every=2)).collect()
        self.assertEqual([r.short_sha for r in result.rows], ['a' * 12, 'c' * 12])
        # the average only sees sampled commits
        self.assertEqual([r.commit_msg_len_avg for r in result.rows], [10, 20])

    def test_memory_pressure(self):
        self.assertTrue(MetricsCollector(make_history(), quiet_config(max_memory_mb=0))._check_memory_pressure())
        self.assertFalse(MetricsCollector(make_history(), quiet_config(max_memory_mb=10 ** 9))._check_memory_pressure())

    def test_parallel_matches_sequential(self):
        sequential = MetricsCollector(make_history(), quiet_config()).collect()
        parallel = MetricsCollector(make_history(), quiet_config(processes=4)).collect()
        self.assertEqual(sequential.rows, parallel.rows)

    def test_no_commits(self):
        repo = make_history()
        repo.history = []
        with self.assertRaises(NoCommitsError) as cm:
            MetricsCollector(repo, quiet_config()).collect()
        self.assertEqual(cm.exception.rev, 'main')
        self.assertIn('main', str(cm.exception))


def make_result():
    rows = [
        CommitRow(datetime.datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC), 'abcdef012345', 120, 4, 30, 10, 10.0),
        CommitRow(datetime.datetime(2024, 1, 3, 0, 0, 0, tzinfo=UTC), '0123456789ab', 150, 6, 31, 21, 15.5),
    ]
    return RunResult(display_name='github.com/user/project.git', rev='main', msg_avg_window=50,
                     rows=rows, blobs_computed=7, blob_cache_hits=3)


class ReportTestCase(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.mkdtemp(prefix='repometrics_test_')

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def path(self, name):
        return os.path.join(self.tmpdir, name)


class TestExport(ReportTestCase):
    """Test CSV and JSON export."""

    def test_csv(self):
        filepath = export_to_csv(make_result(), self.path('metrics.csv'))
        with open(filepath, encoding='utf-8') as f:
            content = f.read()
        lines = content.split('\n')
        self.assertEqual(lines[0], ','.join(CSV_HEADER))
        self.assertEqual(lines[0], 'timestamp_utc,non_test_loc,total_tests,doc_loc,'
                                   'commit,commit_msg_len,commit_msg_len_avg')
        self.assertEqual(lines[1], '2024-01-02T03:04:05Z,120,4,30,abcdef012345,10,10.00')
        self.assertEqual(lines[2], '2024-01-03T00:00:00Z,150,6,31,0123456789ab,21,15.50')
        self.assertNotIn('\r', content)

    def test_csv_decimals(self):
        filepath = MetricsExporter(make_result()).export_csv(self.path('m.csv'), decimals=0)
        with open(filepath, encoding='utf-8') as f:
            rows = list(csv.reader(f))
        self.assertEqual(rows[1][6], '10')
        self.assertEqual(rows[2][6], '16')

    def test_csv_row_count(self):
        filepath = export_to_csv(make_result(), self.path('m.csv'))
        with open(filepath, encoding='utf-8') as f:
            rows = list(csv.reader(f))
        self.assertEqual(len(rows), 3)
        self.assertTrue(all(len(r) == len(CSV_HEADER) for r in rows))

    def test_json(self):
        filepath = export_to_json(make_result(), self.path('metrics.json'))
        with open(filepath, encoding='utf-8') as f:
            data = json.load(f)
        self.assertEqual(data['metadata']['repository'], 'github.com/user/project.git')
        self.assertEqual(data['metadata']['commits'], 2)
        self.assertEqual(data['metadata']['blob_cache_hits'], 3)
        self.assertIn('generated_at', data['metadata'])
        self.assertEqual(data['commits'][1]['commit'], '0123456789ab')
        self.assertEqual(data['commits'][1]['commit_msg_len_avg'], 15.5)

    def test_yaml(self):
        filepath = export_to_yaml(make_result(), self.path('metrics.yaml'))
        with open(filepath, encoding='utf-8') as f:
            data = yaml.safe_load(f)
        self.assertEqual(list(data), ['metadata', 'commits'])
        self.assertEqual(data['metadata']['rev'], 'main')
        self.assertEqual(data['commits'][0]['timestamp_utc'], '2024-01-02T03:04:05Z')
        self.assertEqual(data['commits'][0]['non_test_loc'], 120)


class TestVisualization(ReportTestCase):
    """Test the HTML chart."""

    def test_html_contents(self):
        page = VisualizationGenerator(make_result()).generate_html('metrics.csv')
        self.assertIn('<canvas id="metricsChart">', page)
        self.assertIn(CHART_JS_CDN, page)
        self.assertIn('href="metrics.csv"', page)
        self.assertIn('github.com/user/project.git (rev: main)', page)
        self.assertIn('"nonTestLoc": [120, 150]', page)
        self.assertIn('"msgAvg": [10.0, 15.5]', page)
        self.assertIn("yAxisID: 'y3'", page)
        self.assertIn('(avg 50)', page)
        self.assertIn('"msgLen": [10, 21]', page)

    def test_chart_src_override(self):
        page = VisualizationGenerator(make_result(), 'assets/chart.js').generate_html()
        self.assertIn('<script src="assets/chart.js"></script>', page)
        self.assertNotIn(CHART_JS_CDN, page)

    def test_script_close_is_escaped(self):
        result = make_result()
        result.rows[0] = CommitRow(result.rows[0].timestamp, '</script>', 1, 1, 1, 1, 1.0)
        page = VisualizationGenerator(result).generate_html()
        self.assertEqual(page.count('</script>'), 2)

    def test_empty_series(self):
        result = make_result()
        result.rows = []
        page = VisualizationGenerator(result).generate_html()
        self.assertIn('"labels": []', page)

    def test_page_controls(self):
        page = VisualizationGenerator(make_result()).generate_html('metrics.csv')
        for element_id in ('themeToggle', 'imgExport', 'csvDownload', 'dateStart', 'dateEnd',
                           'applyFilter', 'resetFilter', 'statCommits', 'statRange', 'statCode',
                           'seriesToggles'):
            self.assertIn('id="%s"' % element_id, page)
        for i in range(4):
            self.assertIn('data-series="%d"' % i, page)
        self.assertIn('chart.setDatasetVisibility(', page)
        self.assertIn('chart.toBase64Image(', page)
        self.assertIn('localStorage.getItem(options.themeKey)', page)
        self.assertIn('localStorage.setItem(options.themeKey', page)
        self.assertIn('[data-theme="dark"]', page)
        self.assertIn('URL.createObjectURL', page)

    def test_summary_cards(self):
        page = VisualizationGenerator(make_result()).generate_html('metrics.csv')
        self.assertIn('<p id="statCommits">2</p>', page)
        self.assertIn('<p id="statRange">2024-01-02 to 2024-01-03</p>', page)
        self.assertIn('<p id="statCode">150</p>', page)

    def test_page_options(self):
        page = VisualizationGenerator(make_result(), csv_decimals=3).generate_html('metrics.csv')
        options_line = [line for line in page.splitlines() if line.startswith('const options = ')][0]
        options = json.loads(options_line[len('const options = '):-1])
        self.assertEqual(options['csvName'], 'metrics.csv')
        self.assertEqual(options['csvDecimals'], 3)
        self.assertEqual(options['pngName'], 'metrics.png')
        self.assertEqual(options['msgAvgWindow'], 50)
        self.assertEqual(options['themeKey'], THEME_STORAGE_KEY)

    def test_filtered_csv_header_matches_export(self):
        page = VisualizationGenerator(make_result()).generate_html('metrics.csv')
        self.assertIn("'%s'" % ','.join(CSV_HEADER), page)

    def test_without_csv_name(self):
        page = VisualizationGenerator(make_result()).generate_html()
        self.assertIn('id="csvDownload" class="btn" href="#"', page)

    def test_write(self):
        filepath = generate_visualizations(make_result(), self.path('project.html'), csv_decimals=1)
        with open(filepath, encoding='utf-8') as f:
            page = f.read()
        self.assertIn('href="project.csv"', page)
        self.assertIn('"pngName": "project.png"', page)
        self.assertIn('"csvDecimals": 1', page)


if __name__ == '__main__':
    unittest.main()
