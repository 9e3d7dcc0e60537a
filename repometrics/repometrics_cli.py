"""
Command-line interface module for repometrics.

Contains the RepoMetrics CLI class and usage functions.
"""

import getopt
import sys

from .repometrics_collector import MetricsCollector, NoCommitsError
from .repometrics_config import RepoMetricsConfig, set_config
from .repometrics_export import MetricsExporter
from .repometrics_gitcommands import RepositoryError, RepositoryNotFoundError, getgitversion
from .repometrics_helpers import sanitize_output_prefix, sanitize_repo_for_display
from .repometrics_repository import open_repository
from .repometrics_visualization import generate_visualizations


EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_NO_COMMITS = 4

LONG_OPTIONS = [
	'help', 'debug', 'verbose',
	'branch=', 'first-parent', 'include-merges',
	'sample-every=', 'max-commits=', 'max-file-bytes=',
	'msg-avg-window=', 'output-prefix=', 'csv-decimals=',
	'chart-src=', 'json', 'yaml', 'dry-run', 'keep-temp',
]

INT_OPTIONS = {
	'--sample-every': 'sample_every',
	'--max-commits': 'max_commits',
	'--max-file-bytes': 'max_file_bytes',
	'--msg-avg-window': 'msg_avg_window',
	'--csv-decimals': 'csv_decimals',
}

FLAG_OPTIONS = {
	'--first-parent': 'first_parent',
	'--include-merges': 'include_merges',
	'--json': 'export_json',
	'--yaml': 'export_yaml',
	'--dry-run': 'dry_run',
	'--keep-temp': 'keep_temp',
	'--verbose': 'verbose',
}


class UsageError(Exception):
	"""Raised for invalid command-line arguments."""


def usage():
	print("""
Usage: repo-metrics [options] <repo-url-or-path>

Analyze a repository's history and write <prefix>.csv and <prefix>.html with,
per commit: non-test LOC, Markdown LOC, total test cases and the rolling
average commit message length.

Options:
--branch REV           Revision to analyze (default: current branch)
--first-parent         Follow only the first parent of merge commits
--include-merges       Include merge commits
--sample-every N       Analyze every Nth commit (default: 1)
--max-commits N        Analyze at most N (most recent) commits
--max-file-bytes B     Skip blobs larger than B bytes (default: 1000000)
--msg-avg-window N     Rolling window for commit message length (default: 50)
--output-prefix P      Output file prefix (default: metrics)
--csv-decimals N       Decimals for the average column (default: 2)
--chart-src URL        Chart.js script source (default: CDN)
--json                 Also write <prefix>.json
--yaml                 Also write <prefix>.yaml
--dry-run              Show what would be analyzed, write nothing
--keep-temp            Keep the temporary clone of a remote repository
--verbose              Enable verbose output
--debug                Enable debug output (implies --verbose)
-c key=value           Override configuration value
-h, --help             Show this help message

Examples:
  repo-metrics .
  repo-metrics https://github.com/user/project.git --first-parent --sample-every 10
  repo-metrics --verbose -c processes=4 ../project --output-prefix project
""")


class RepoMetrics:
	def parse_args(self, args_orig):
		"""
		Build a configuration from command-line arguments.

		Returns:
			Tuple of (RepoMetricsConfig, repository argument)

		Raises:
			UsageError: On unknown options, bad values or a missing repository
		"""
		config = RepoMetricsConfig()
		try:
			optlist, args = getopt.gnu_getopt(args_orig, 'hc:', LONG_OPTIONS)
		except getopt.GetoptError as e:
			raise UsageError(str(e)) from e

		for o, v in optlist:
			if o == '-c':
				try:
					config.apply_override(v)
				except KeyError as e:
					raise UsageError('Configuration error: %s' % e) from e
				except ValueError as e:
					raise UsageError('Invalid value for -c %s (%s)' % (v, e)) from e
			elif o in INT_OPTIONS:
				try:
					setattr(config, INT_OPTIONS[o], int(v))
				except ValueError as e:
					raise UsageError('%s expects an integer, got: %s' % (o, v)) from e
			elif o in FLAG_OPTIONS:
				setattr(config, FLAG_OPTIONS[o], True)
			elif o == '--debug':
				config.debug = True
				config.verbose = True  # Debug implies verbose
			elif o == '--branch':
				config.branch = v
			elif o == '--output-prefix':
				config.output_prefix = v
			elif o == '--chart-src':
				config.chart_src = v
			elif o in ('-h', '--help'):
				usage()
				sys.exit(EXIT_OK)

		if len(args) != 1:
			raise UsageError('Expected exactly one repository URL or path')

		self._normalize(config)
		return config, args[0]

	def _normalize(self, config):
		"""Clamp out-of-range values to their defaults."""
		defaults = RepoMetricsConfig()
		if config.sample_every < 1:
			config.sample_every = 1
		if config.msg_avg_window < 1:
			config.msg_avg_window = defaults.msg_avg_window
		if config.csv_decimals < 0:
			config.csv_decimals = defaults.csv_decimals
		if config.max_commits is not None and config.max_commits < 1:
			config.max_commits = None
		if config.processes < 1:
			config.processes = 1
		config.output_prefix = sanitize_output_prefix(config.output_prefix)

	def run(self, args_orig):
		"""
		Run the tool and return the process exit code.
		"""
		try:
			config, repo_arg = self.parse_args(args_orig)
		except UsageError as e:
			print(f'FATAL: {e}')
			usage()
			return EXIT_USAGE

		set_config(config)

		if config.dry_run:
			print(f'Dry run: would analyze {sanitize_repo_for_display(repo_arg)} on rev '
				f'{config.branch or "HEAD"}; no files will be written.')
			return EXIT_OK

		try:
			if config.verbose:
				print(f'Using {getgitversion()}')
			with open_repository(repo_arg, keep_temp=config.keep_temp) as repository:
				result = MetricsCollector(repository, config).collect()
		except NoCommitsError as e:
			print(str(e))
			return EXIT_NO_COMMITS
		except RepositoryNotFoundError as e:
			print(f'FATAL: {e}')
			return EXIT_USAGE
		except RepositoryError as e:
			print(f'FATAL: {e}')
			if config.debug:
				import traceback
				traceback.print_exc()
			return EXIT_FAILURE

		self.write_outputs(result, config)
		return EXIT_OK

	def write_outputs(self, result, config):
		prefix = config.output_prefix
		exporter = MetricsExporter(result)
		exporter.export_csv(f'{prefix}.csv', config.csv_decimals)
		if config.export_json:
			exporter.export_json(f'{prefix}.json')
		if config.export_yaml:
			exporter.export_yaml(f'{prefix}.yaml')
		generate_visualizations(result, f'{prefix}.html', config.chart_src or None, config.csv_decimals)
		print(f'Report written to {prefix}.csv and {prefix}.html')


def main(argv=None):
	if argv is None:
		argv = sys.argv[1:]
	debug = '--debug' in argv
	try:
		return RepoMetrics().run(argv)
	except KeyboardInterrupt:
		print('\nInterrupted by user')
		return EXIT_FAILURE
	except Exception as e:
		print(f'FATAL: Unexpected error: {e}')
		if debug:
			import traceback
			traceback.print_exc()
		return EXIT_FAILURE


if __name__ == '__main__':
	sys.exit(main())
