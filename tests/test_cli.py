"""Tests for the reconcile command line."""

import os
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from reconcile import cli

from conftest import T1, T2


@pytest.fixture
def run(sample_config):
    runner = CliRunner()

    def _invoke(*args):
        return runner.invoke(cli, ['--config', sample_config.config_path, *map(str, args)])

    return _invoke


class TestCopyCommand:
    def test_copy_renames_on_collision(self, run, make_file, tmp_path):
        dest = tmp_path / 'dest'
        make_file('Photo.jpg', base=dest)
        source = make_file('src/Photo_4.jpg', content=b'new')

        result = run('copy', '--passthru', source, dest)

        assert result.exit_code == 0, result.output
        assert (dest / 'Photo_1.jpg').read_bytes() == b'new'
        assert str(dest / 'Photo_1.jpg') in result.output

    def test_missing_destination_fails(self, run, make_file, tmp_path):
        source = make_file('src/a.jpg')
        result = run('copy', source, tmp_path / 'nope')
        assert result.exit_code == 1
        assert 'Copy failed' in result.output

    def test_report_saved(self, run, make_file, sample_config, tmp_path):
        dest = tmp_path / 'dest'
        dest.mkdir()
        source = make_file('src/a.jpg')

        result = run('copy', '--report', 'copy.txt', source, dest)

        assert result.exit_code == 0, result.output
        assert (tmp_path / 'reports' / 'copy.txt').exists()


class TestDedupeCommand:
    def test_duplicate_removed(self, run, make_file, tmp_path):
        album = tmp_path / 'album'
        make_file('IMG_1.jpg', modified=T1, base=album)
        make_file('IMG_1_1.jpg', modified=T1, base=album)

        result = run('dedupe', album)

        assert result.exit_code == 0, result.output
        assert not (album / 'IMG_1_1.jpg').exists()
        assert (album / 'IMG_1.jpg').exists()

    def test_keep_and_dry_run(self, run, make_file, tmp_path):
        album = tmp_path / 'album'
        make_file('IMG_1.jpg', modified=T1, base=album)
        make_file('IMG_1_1.jpg', modified=T1, base=album)

        result = run('dedupe', '--keep', '--dry-run', album)

        assert result.exit_code == 0, result.output
        assert 'DRY RUN' in result.output
        assert (album / 'IMG_1_1.jpg').exists()
        assert not (album / 'Duplicates').exists()


class TestTimestampCommand:
    def test_filesystem_timestamp_printed(self, run, make_file):
        photo = make_file('a.jpg', modified=T2)
        result = run('timestamp', '--filesystem', '--modified', photo)
        assert result.exit_code == 0, result.output
        assert T2.isoformat(sep=' ') in result.output

    def test_all_failures_exit_nonzero(self, run, tmp_path):
        result = run('timestamp', tmp_path / 'missing.jpg')
        assert result.exit_code == 1


def test_invalid_config_rejected(tmp_path, make_file):
    bad = tmp_path / 'bad.yml'
    bad.write_text("logging:\n  level: LOUD\n")
    photo = make_file('a.jpg')
    result = CliRunner().invoke(cli, ['--config', str(bad), 'timestamp', str(photo)])
    assert result.exit_code == 1
    assert 'Configuration validation failed' in result.output


class TestSetDateCommand:
    def test_options_passed_through(self, run, make_file):
        photo = make_file('a.jpg')
        results = {'operation': 'set-date', 'dry_run': True, 'timestamp': 'now',
                   'affected': [str(photo)], 'dates': {}, 'errors': []}
        with patch('reconcile.CanonicalDateSetter.set_canonical_dates', return_value=results) as setter:
            result = run('set-date', '--use-latest', '--ignore-created', '--dry-run', photo)

        assert result.exit_code == 0, result.output
        setter.assert_called_once_with(
            (str(photo),), use_latest=True, ignore_created=True, dry_run=True,
        )

    def test_modified_time_kept(self, run, make_file):
        video = make_file('clip.mov', modified=T1)
        with patch('photo_reconciler.timestamps.set_created_time', return_value=False):
            result = run('set-date', '--passthru', video)

        assert result.exit_code == 0, result.output
        assert str(video) in result.output
        assert os.stat(video).st_mtime == T1.timestamp()


class TestUniqueCommand:
    def test_recurse_follows_config_unless_given(self, run, make_file, tmp_path):
        source, target, dest = tmp_path / 'p', tmp_path / 'q', tmp_path / 'dest'
        make_file('Beach.jpg', modified=T1, base=source)
        make_file('trip/Cliff.jpg', modified=T1, base=source)
        target.mkdir()
        dest.mkdir()

        result = run('unique', source, target, dest)
        assert result.exit_code == 0, result.output
        assert os.listdir(dest) == ['Beach.jpg']

        result = run('unique', '--recurse', source, target, dest)
        assert result.exit_code == 0, result.output
        assert sorted(os.listdir(dest)) == ['Beach.jpg', 'Beach_1.jpg', 'Cliff.jpg']

    def test_missing_destination_fails(self, run, tmp_path):
        (tmp_path / 'p').mkdir()
        (tmp_path / 'q').mkdir()
        result = run('unique', tmp_path / 'p', tmp_path / 'q', tmp_path / 'nope')
        assert result.exit_code == 1
        assert 'Copy unique failed' in result.output


class TestCopySinceCommand:
    def _batch(self, make_file, tmp_path):
        make_file('src/old.jpg', modified=T1)
        make_file('src/new.jpg', modified=T2)
        dest = tmp_path / 'dest'
        dest.mkdir()
        return tmp_path / 'src', dest

    def test_cutoff(self, run, make_file, tmp_path):
        source, dest = self._batch(make_file, tmp_path)
        result = run('copy-since', '--cutoff', '2022-01-01', source, dest)
        assert result.exit_code == 0, result.output
        assert os.listdir(dest) == ['new.jpg']

    def test_first_file(self, run, make_file, tmp_path):
        source, dest = self._batch(make_file, tmp_path)
        result = run('copy-since', '--first-file', source / 'old.jpg', source, dest)
        assert result.exit_code == 0, result.output
        assert sorted(os.listdir(dest)) == ['new.jpg', 'old.jpg']


class TestBulkCopyCommand:
    def test_tree_copied_without_recursion(self, run, make_file, tmp_path):
        make_file('src/a.jpg')
        make_file('src/2021/b.jpg')
        dest = tmp_path / 'archive'

        result = run('bulk-copy', '--no-recurse', '--pattern', '*.JPG', tmp_path / 'src', dest)

        assert result.exit_code == 0, result.output
        assert os.listdir(dest) == ['a.jpg']

    def test_retries_and_wait_passed_through(self, run, make_file, tmp_path):
        make_file('src/a.jpg')
        with patch('photo_reconciler.bulk_copy.shutil.copy2', side_effect=OSError('busy')), \
                patch('photo_reconciler.bulk_copy.time.sleep') as sleep:
            result = run('bulk-copy', '--retries', '1', '--wait', '7', tmp_path / 'src', tmp_path / 'archive')

        assert result.exit_code == 1
        sleep.assert_called_once_with(7.0)
        assert 'ERROR attempt 2' in result.output
