"""Tests for run reports."""

from pathlib import Path

from photo_reconciler.reporter import ReconcileReporter


def _results(**overrides):
    results = {
        'operation': 'dedupe',
        'dry_run': False,
        'timestamp': '2024-05-01T10:20:30',
        'directory': '/photos/2024',
        'total_files': 12,
        'affected': ['/photos/2024/a_1.jpg', '/photos/2024/b_1.jpg'],
        'errors': [],
    }
    results.update(overrides)
    return results


def test_should_summarize_affected_files(sample_config):
    report = ReconcileReporter(sample_config).generate_summary_report(_results())

    assert 'DUPLICATE REMOVAL REPORT' in report
    assert 'Files examined: 12' in report
    assert '/photos/2024/a_1.jpg' in report
    assert 'COMPLETE SUCCESS' in report


def test_should_truncate_long_file_lists(sample_config):
    affected = [f'/photos/{i}.jpg' for i in range(30)]
    report = ReconcileReporter(sample_config).generate_summary_report(_results(affected=affected), max_listed=5)

    assert '/photos/4.jpg' in report
    assert '/photos/5.jpg' not in report
    assert '... and 25 more files' in report


def test_should_flag_errors_and_dry_run(sample_config):
    results = _results(dry_run=True, errors=['Bad path /x: no matching files'])
    report = ReconcileReporter(sample_config).generate_summary_report(results)

    assert 'Mode: DRY RUN' in report
    assert 'Bad path /x' in report
    assert 'COMPLETED WITH ISSUES' in report


def test_should_save_report_into_report_dir(sample_config):
    report_file = ReconcileReporter(sample_config).save_report(_results(operation='unique'))

    path = Path(report_file)
    assert path.parent == Path(sample_config.get_report_dir())
    assert path.name == 'unique_report_2024-05-01T10-20-30.txt'
    assert 'COPY UNIQUE REPORT' in path.read_text(encoding='utf-8')
