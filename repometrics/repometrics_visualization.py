"""
Interactive chart module for repometrics.

Generates a self-contained HTML page plotting the commit series:
- Non-test LOC and Markdown LOC (left axis)
- Total test cases (right axis)
- Rolling average commit message length (second right axis)

The page carries its own controls: a date-range filter that also drives the
summary cards and the CSV download, per-series toggles, PNG export and a
light/dark theme remembered in localStorage.
"""

import html
import json
import os
from typing import Optional

from .repometrics_config import get_config


CHART_JS_CDN = 'https://cdn.jsdelivr.net/npm/chart.js@4.4.1/dist/chart.umd.min.js'

THEME_STORAGE_KEY = 'repometrics-theme'

PAGE_STYLE = """
:root { --bg: #f6f8fa; --card: #ffffff; --fg: #0f1724; --muted: #64748b; --grid: rgba(15, 23, 36, 0.08); --border: rgba(0, 0, 0, 0.1); }
[data-theme="dark"] { --bg: #071124; --card: #0b1a2b; --fg: #e6eef8; --muted: #9aa7b2; --grid: rgba(230, 238, 248, 0.12); --border: rgba(255, 255, 255, 0.15); }
body { margin: 0; font-family: system-ui, -apple-system, "Segoe UI", Roboto, Arial, sans-serif; background: var(--bg); color: var(--fg); }
.topbar { display: flex; align-items: center; justify-content: space-between; padding: 14px 20px; background: var(--card); box-shadow: 0 2px 12px rgba(2, 6, 23, 0.06); }
.brand { font-weight: 700; font-size: 16px; }
.meta { font-size: 13px; color: var(--muted); margin-top: 4px; }
.row { display: flex; gap: 8px; align-items: center; flex-wrap: wrap; }
.btn { background: transparent; border: 1px solid var(--border); padding: 8px 12px; border-radius: 10px; font-size: 13px; color: var(--fg); text-decoration: none; cursor: pointer; }
.main { display: grid; grid-template-columns: 280px 1fr; gap: 18px; padding: 18px; align-items: start; }
.panel { background: var(--card); border-radius: 12px; padding: 14px; box-shadow: 0 8px 24px rgba(2, 6, 23, 0.06); }
.controls { display: flex; flex-direction: column; gap: 12px; }
.cards { display: grid; grid-template-columns: 1fr; gap: 10px; }
.stat h3 { margin: 0; font-size: 14px; }
.stat p { margin: 4px 0 0; font-weight: 700; font-size: 18px; }
.small { font-size: 12px; color: var(--muted); }
.legend { display: flex; flex-direction: column; gap: 6px; }
.legend label { display: inline-flex; align-items: center; gap: 8px; cursor: pointer; }
input[type=date] { background: var(--card); color: var(--fg); border: 1px solid var(--border); border-radius: 8px; padding: 6px; }
.chart { height: 66vh; }
@media (max-width: 920px) { .main { grid-template-columns: 1fr; } }
"""

# Static part of the page script; the generator defines `data` and `options` before it.
CHART_SCRIPT = """
(function() {
    const full = data;
    const root = document.body;
    const seriesKeys = ['nonTestLoc', 'docLoc', 'tests', 'msgAvg'];
    let view = full;
    let csvUrl = null;

    function cssVar(name) {
        return getComputedStyle(root).getPropertyValue(name).trim();
    }

    function sliceRange(start, end) {
        const out = { labels: [], commits: [], nonTestLoc: [], docLoc: [], tests: [], msgLen: [], msgAvg: [] };
        for (let i = 0; i < full.labels.length; i++) {
            const day = full.labels[i].slice(0, 10);
            if (start && day < start) continue;
            if (end && day > end) continue;
            Object.keys(out).forEach(function(key) { out[key].push(full[key][i]); });
        }
        return out;
    }

    function csvCell(value) {
        const s = String(value);
        return /[",\\n]/.test(s) ? '"' + s.replace(/"/g, '""') + '"' : s;
    }

    function makeCsv(d) {
        const lines = ['timestamp_utc,non_test_loc,total_tests,doc_loc,commit,commit_msg_len,commit_msg_len_avg'];
        for (let i = 0; i < d.labels.length; i++) {
            lines.push([
                d.labels[i], d.nonTestLoc[i], d.tests[i], d.docLoc[i], d.commits[i], d.msgLen[i],
                Number(d.msgAvg[i]).toFixed(options.csvDecimals)
            ].map(csvCell).join(','));
        }
        return lines.join('\\n') + '\\n';
    }

    function updateCsvLink() {
        const link = document.getElementById('csvDownload');
        if (csvUrl) {
            URL.revokeObjectURL(csvUrl);
            csvUrl = null;
        }
        if (view === full && options.csvName) {
            link.href = options.csvName;
            link.setAttribute('download', options.csvName);
            return;
        }
        csvUrl = URL.createObjectURL(new Blob([makeCsv(view)], { type: 'text/csv' }));
        link.href = csvUrl;
        const base = (options.csvName || 'metrics.csv').replace(/\\.csv$/, '');
        link.setAttribute('download', view === full ? base + '.csv' : base + '-filtered.csv');
    }

    function renderSummary() {
        const n = view.labels.length;
        document.getElementById('statCommits').textContent = String(n);
        document.getElementById('statRange').textContent =
            n ? view.labels[0].slice(0, 10) + ' to ' + view.labels[n - 1].slice(0, 10) : '-';
        document.getElementById('statCode').textContent = n ? view.nonTestLoc[n - 1].toLocaleString() : '-';
    }

    const background = {
        id: 'pageBackground',
        beforeDraw: function(c) {
            const ctx = c.ctx;
            ctx.save();
            ctx.globalCompositeOperation = 'destination-over';
            ctx.fillStyle = cssVar('--card') || '#ffffff';
            ctx.fillRect(0, 0, c.width, c.height);
            ctx.restore();
        }
    };

    function axis(position, text, extra) {
        return Object.assign({
            position: position,
            beginAtZero: true,
            title: { display: true, text: text }
        }, extra || {});
    }

    let saved = null;
    try {
        saved = localStorage.getItem(options.themeKey);
    } catch (e) {
        saved = null;
    }
    root.setAttribute('data-theme', saved === 'dark' ? 'dark' : 'light');

    const chart = new Chart(document.getElementById('metricsChart'), {
        type: 'line',
        data: {
            labels: view.labels,
            datasets: [
                { label: 'Non-test LOC', data: view.nonTestLoc, yAxisID: 'y', borderWidth: 2, pointRadius: 0, borderColor: '#0ea5e9' },
                { label: 'Markdown LOC', data: view.docLoc, yAxisID: 'y', borderWidth: 2, pointRadius: 0, borderDash: [2, 3], borderColor: '#7c3aed' },
                { label: 'Total test cases', data: view.tests, yAxisID: 'y2', borderWidth: 2, pointRadius: 0, borderDash: [8, 4], borderColor: '#16a34a' },
                { label: 'Avg commit msg length (chars, last ' + options.msgAvgWindow + ')', data: view.msgAvg, yAxisID: 'y3', borderWidth: 2, pointRadius: 0, borderDash: [12, 4, 2, 4], borderColor: '#f97316' }
            ]
        },
        options: {
            responsive: true,
            maintainAspectRatio: false,
            interaction: { mode: 'index', intersect: false },
            plugins: {
                title: { display: true, text: options.title, align: 'start' },
                legend: { position: 'top', align: 'start' },
                tooltip: {
                    callbacks: {
                        title: function(items) {
                            const i = items[0].dataIndex;
                            return view.labels[i] + '  ' + view.commits[i];
                        }
                    }
                }
            },
            scales: {
                x: {
                    title: { display: true, text: 'Commit date' },
                    ticks: {
                        maxTicksLimit: 12,
                        callback: function(value) { return this.getLabelForValue(value).slice(0, 10); }
                    }
                },
                y: axis('left', 'LOC (non-test & markdown)'),
                y2: axis('right', 'Total test cases', { grid: { drawOnChartArea: false } }),
                y3: axis('right', 'Avg commit msg length (chars)', { grid: { drawOnChartArea: false } })
            }
        },
        plugins: [background]
    });

    function styleChart() {
        const fg = cssVar('--fg');
        const grid = cssVar('--grid');
        chart.options.plugins.title.color = fg;
        chart.options.plugins.legend.labels.color = fg;
        Object.keys(chart.options.scales).forEach(function(id) {
            const scale = chart.options.scales[id];
            scale.ticks.color = fg;
            scale.title.color = fg;
            scale.grid.color = grid;
        });
    }

    function render() {
        chart.data.labels = view.labels;
        seriesKeys.forEach(function(key, i) { chart.data.datasets[i].data = view[key]; });
        chart.update();
        renderSummary();
        updateCsvLink();
    }

    document.getElementById('themeToggle').addEventListener('click', function() {
        const next = root.getAttribute('data-theme') === 'dark' ? 'light' : 'dark';
        root.setAttribute('data-theme', next);
        try {
            localStorage.setItem(options.themeKey, next);
        } catch (e) {
            // storage disabled: the theme still applies to this page
        }
        styleChart();
        chart.update();
    });

    document.getElementById('imgExport').addEventListener('click', function() {
        const link = document.createElement('a');
        link.href = chart.toBase64Image('image/png', 1);
        link.download = options.pngName;
        document.body.appendChild(link);
        link.click();
        link.remove();
    });

    document.querySelectorAll('#seriesToggles input[type=checkbox]').forEach(function(box) {
        box.addEventListener('change', function() {
            chart.setDatasetVisibility(Number(box.dataset.series), box.checked);
            chart.update();
        });
    });

    const startInput = document.getElementById('dateStart');
    const endInput = document.getElementById('dateEnd');
    if (full.labels.length) {
        [startInput, endInput].forEach(function(input) {
            input.min = full.labels[0].slice(0, 10);
            input.max = full.labels[full.labels.length - 1].slice(0, 10);
        });
    }

    document.getElementById('applyFilter').addEventListener('click', function() {
        const start = startInput.value;
        const end = endInput.value;
        view = (start || end) ? sliceRange(start, end) : full;
        render();
    });

    document.getElementById('resetFilter').addEventListener('click', function() {
        startInput.value = '';
        endInput.value = '';
        view = full;
        render();
    });

    styleChart();
    chart.update();
    renderSummary();
    updateCsvLink();
})();
"""


def _script_json(value) -> str:
    # '</' must not appear inside the inline script
    return json.dumps(value).replace('</', '<\\/')


class VisualizationGenerator:
    """
    Generates the interactive HTML chart for a run.
    Uses Chart.js for rendering.
    """

    def __init__(self, result, chart_src: Optional[str] = None, csv_decimals: int = 2):
        """
        Initialize the visualization generator.

        Args:
            result: RunResult produced by MetricsCollector.collect()
            chart_src: Chart.js script URL or relative path; CDN when empty
            csv_decimals: Decimal places of the average in CSV downloads
        """
        self.result = result
        self.chart_src = chart_src or CHART_JS_CDN
        self.csv_decimals = max(0, csv_decimals)

    def get_title(self) -> str:
        return 'Code (non-test) & Markdown LOC vs Test Cases vs Commit Msg Length (avg %d)' % (
            self.result.msg_avg_window)

    def generate_series_data(self) -> str:
        """
        Generate the chart series as JSON.

        Returns:
            JSON string with labels, commit ids and one list per series
        """
        rows = self.result.rows
        return json.dumps({
            'labels': [row.iso_when for row in rows],
            'commits': [row.short_sha for row in rows],
            'nonTestLoc': [row.non_test_loc for row in rows],
            'docLoc': [row.doc_loc for row in rows],
            'tests': [row.total_tests for row in rows],
            'msgLen': [row.commit_msg_len for row in rows],
            'msgAvg': [row.commit_msg_len_avg for row in rows],
        })

    def _summary(self):
        rows = self.result.rows
        if not rows:
            return '0', '-', '-'
        date_range = '%s to %s' % (rows[0].iso_when[:10], rows[-1].iso_when[:10])
        return str(len(rows)), date_range, '{:,}'.format(rows[-1].non_test_loc)

    def _page_options(self, csv_name: str) -> str:
        base = os.path.splitext(csv_name)[0] if csv_name else 'metrics'
        return _script_json({
            'title': self.get_title(),
            'msgAvgWindow': self.result.msg_avg_window,
            'csvName': csv_name,
            'csvDecimals': self.csv_decimals,
            'pngName': base + '.png',
            'themeKey': THEME_STORAGE_KEY,
        })

    def generate_html(self, csv_name: str = '') -> str:
        """Generate the complete HTML page."""
        title = self.get_title()
        label = '%s (rev: %s)' % (self.result.display_name, self.result.rev)
        commits, date_range, latest_loc = self._summary()
        csv_href = html.escape(csv_name) if csv_name else '#'
        series = self.generate_series_data().replace('</', '<\\/')

        return f'''<!doctype html>
<html>
<head>
<meta charset="utf-8"/>
<title>{html.escape(title)}</title>
<meta name="viewport" content="width=device-width, initial-scale=1"/>
<style>{PAGE_STYLE}</style>
</head>
<body data-theme="light">
<div class="topbar">
    <div>
        <div class="brand">Repo metrics</div>
        <div class="meta">{html.escape(label)}</div>
    </div>
    <div class="row">
        <button id="themeToggle" class="btn" type="button">Toggle theme</button>
        <button id="imgExport" class="btn" type="button">Export PNG</button>
        <a id="csvDownload" class="btn" href="{csv_href}" download="{html.escape(csv_name)}">Download CSV</a>
    </div>
</div>
<div class="main">
    <aside class="panel">
        <div class="controls">
            <div class="cards">
                <div class="stat"><h3>Commits</h3><p id="statCommits">{commits}</p></div>
                <div class="stat"><h3>Range</h3><p id="statRange">{html.escape(date_range)}</p></div>
                <div class="stat"><h3>Non-test LOC</h3><p id="statCode">{latest_loc}</p></div>
            </div>
            <div class="small">Series</div>
            <div class="legend" id="seriesToggles">
                <label><input type="checkbox" data-series="0" checked/> Non-test LOC</label>
                <label><input type="checkbox" data-series="1" checked/> Markdown LOC</label>
                <label><input type="checkbox" data-series="2" checked/> Test cases</label>
                <label><input type="checkbox" data-series="3" checked/> Avg msg length</label>
            </div>
            <div class="small">Filter by date</div>
            <div class="row">
                <input id="dateStart" type="date"/>
                <input id="dateEnd" type="date"/>
            </div>
            <div class="row">
                <button id="applyFilter" class="btn" type="button">Apply</button>
                <button id="resetFilter" class="btn" type="button">Reset</button>
            </div>
            <div class="small">The CSV download follows the filtered range. The theme is remembered across reloads.</div>
        </div>
    </aside>
    <section class="panel">
        <div class="chart"><canvas id="metricsChart"></canvas></div>
    </section>
</div>
<script src="{html.escape(self.chart_src)}"></script>
<script>
const data = {series};
const options = {self._page_options(csv_name)};
{CHART_SCRIPT}
</script>
</body>
</html>
'''

    def write(self, filepath: str) -> str:
        """
        Write the HTML chart next to its CSV.

        Args:
            filepath: HTML file to write; the CSV link uses the same base name

        Returns:
            Path to the created HTML file
        """
        csv_name = os.path.splitext(os.path.basename(filepath))[0] + '.csv'
        with open(filepath, 'w', encoding='utf-8') as f:
            f.write(self.generate_html(csv_name))

        if get_config().verbose:
            print(f'Wrote {filepath}')

        return filepath


def generate_visualizations(result, filepath: str, chart_src: Optional[str] = None,
                            csv_decimals: int = 2) -> str:
    """
    Convenience function to write the HTML chart for a run.

    Args:
        result: RunResult to plot
        filepath: HTML file to write
        chart_src: Chart.js script source override
        csv_decimals: Decimal places of the average in CSV downloads

    Returns:
        Path to the created HTML file

    """
    return VisualizationGenerator(result, chart_src, csv_decimals).write(filepath)
