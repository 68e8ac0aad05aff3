import io
import os
import tarfile
import tempfile
import unittest
import unittest.mock

from seqpublish.exceptions import ConfigurationError, StagingError
from seqpublish.models import FileKind, SourceFile
from seqpublish.services import LogArchiver, infer_id_run, log_context

from test.publish_fakes import InMemoryObjectStore, write_file

DEST_COLLECTION = 'gs://cpg-illumina-test/logs'
BAM_BASECALLS = 'Data/Intensities/BAM_basecalls_20151214-085833'

# Pipeline central, post qc review and product release logs
PIPELINE_LOGS = [
    '_software_npg_20241107_bin_npg_pipeline_central_17550_20241101-132705-1566962201.definitions.json',
    '_software_npg_20241107_bin_npg_pipeline_post_qc_review_17550_20241104-124525-1544617117.definitions.json',
    '_software_npg_20241107_bin_npg_pipeline_central_17550_20241101-132705-1566962201.log',
    '_software_npg_20241107_bin_npg_pipeline_post_qc_review_17550_20241104-124525-1544617117.log',
    'product_release_20241101-132705-1247165951.yml',
    'product_release_20241104-124525-1500421497.yml',
]

# Bulk data which is never archived
DATA_FILES = [
    'Data/Intensities/BaseCalls/L001/C1.1/s_1_1101.bcl.gz',
    'Data/Intensities/BaseCalls/L001/s_1_1101.filter',
    'Data/Intensities/L001/s_1_1101.locs',
    f'{BAM_BASECALLS}/no_cal/archive/18448_1#1.cram',
    f'{BAM_BASECALLS}/no_cal/archive/18448_1#1.cram.crai',
    f'{BAM_BASECALLS}/no_cal/18448_1.bam',
    '18448_logs.tar.xz',
]


def runfolder_logs() -> list[str]:
    """The logs of a sequencing run, other than pipeline logs"""
    logs = ['RunInfo.xml', 'runParameters.xml']
    for lane in range(1, 9):
        logs.append(f'{BAM_BASECALLS}/log/bam_basecall_{lane}.err')
        logs.append(f'{BAM_BASECALLS}/log/bam_basecall_{lane}.out')
        logs.append(f'{BAM_BASECALLS}/no_cal/archive/lane{lane}/qc/18448_{lane}.json')
    logs.append(f'{BAM_BASECALLS}/metadata_cache_18448/samplesheet_18448.csv')
    logs.extend(f'Logs/151211_18448_{i}.log' for i in range(10))
    return logs


class TestInferIdRun(unittest.TestCase):
    """Test the run id is found in run folder names"""

    def test_infer_id_run(self):
        """Test instrument run folder names"""
        self.assertEqual(17550, infer_id_run('150910_HS40_17550_A_C75BCANXX'))
        self.assertEqual(18448, infer_id_run('151211_HX3_18448_B_HHH55CCXX'))
        self.assertEqual(10371, infer_id_run('100818_IL32_10371'))

    def test_no_id_run(self):
        """Test names without a run id"""
        self.assertIsNone(infer_id_run('logs_without_run_id'))
        self.assertIsNone(infer_id_run('r84047_20240110_150000'))

    def test_log_context(self):
        """Test an explicit id_run wins over the folder name"""
        context = log_context('/data/100818_IL32_10371/', id_run=999)
        self.assertEqual(999, context.id_run)
        self.assertEqual('100818_IL32_10371', context.runfolder_name)
        self.assertEqual('999_logs.tar.xz', context.archive_name)

        self.assertEqual(10371, log_context('/data/100818_IL32_10371').id_run)

        with self.assertRaises(ConfigurationError):
            log_context('/data/logs_without_run_id')


class TestLogArchiver(unittest.TestCase):
    """Test archiving and publishing run folder logs"""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()  # pylint: disable=R1732
        self.store = InMemoryObjectStore()
        self.archiver = LogArchiver(self.store)

    def tearDown(self):
        self.tmpdir.cleanup()

    def _runfolder(self, name: str, files: list[str]) -> str:
        runfolder = os.path.join(self.tmpdir.name, name)
        for path in files:
            write_file(os.path.join(runfolder, path), f'{path}\n')
        return runfolder

    def _archive_members(self, object_id: str) -> list[str]:
        with tarfile.open(
            fileobj=io.BytesIO(self.store.objects[object_id]), mode='r:xz'
        ) as tar:
            return tar.getnames()

    def test_publish_logs_given_id_run(self):
        """Test the archive is tagged with the given id_run"""
        runfolder = self._runfolder(
            '100818_IL32_10371', ['RunInfo.xml', 'Logs/10371.log']
        )

        object_id = self.archiver.publish_logs(
            runfolder, DEST_COLLECTION, id_run=999
        )

        self.assertEqual(f'{DEST_COLLECTION}/999_logs.tar.xz', object_id)
        metadata = self.store.get_metadata(object_id)
        self.assertEqual('999', metadata['id_run'])
        self.assertEqual('100818_IL32_10371', metadata['runfolder'])
        self.assertIn(DEST_COLLECTION, self.store.collections)

    def test_publish_logs_inferred_id_run(self):
        """Test the id_run is inferred from the run folder name"""
        runfolder = self._runfolder(
            '150910_HS40_17550_A_C75BCANXX', ['RunInfo.xml', 'Logs/17550.log']
        )

        object_id = self.archiver.publish_logs(runfolder, DEST_COLLECTION + '/')

        self.assertEqual(f'{DEST_COLLECTION}/17550_logs.tar.xz', object_id)
        self.assertEqual('17550', self.store.get_metadata(object_id)['id_run'])

    def test_pipeline_logs_are_archived(self):
        """Test pipeline central, post qc and product release logs are included"""
        logs = runfolder_logs() + [f'{BAM_BASECALLS}/{log}' for log in PIPELINE_LOGS]
        runfolder = self._runfolder('151211_HX3_18448_B_HHH55CCXX', logs + DATA_FILES)

        object_id = self.archiver.publish_logs(
            runfolder, DEST_COLLECTION, id_run=18448
        )
        members = self._archive_members(object_id)

        self.assertEqual(43, len(members))
        self.assertListEqual(sorted(logs), sorted(members))
        for log in PIPELINE_LOGS:
            self.assertTrue(
                any(member.endswith(log) for member in members), f'{log} in archive'
            )

    def test_data_files_are_not_archived(self):
        """Test sequence and intensity data is left out of the archive"""
        runfolder = self._runfolder(
            '151211_HX3_18448_B_HHH55CCXX', ['RunInfo.xml'] + DATA_FILES
        )

        members = self._archive_members(
            self.archiver.publish_logs(runfolder, DEST_COLLECTION)
        )

        self.assertEqual(['RunInfo.xml'], members)

    def test_archive_content(self):
        """Test archived logs keep their content"""
        runfolder = self._runfolder('100818_IL32_10371', ['Logs/10371.log'])

        object_id = self.archiver.publish_logs(runfolder, DEST_COLLECTION)

        with tarfile.open(
            fileobj=io.BytesIO(self.store.objects[object_id]), mode='r:xz'
        ) as tar:
            content = tar.extractfile('Logs/10371.log').read()
        self.assertEqual(b'Logs/10371.log\n', content)

    def test_symlinked_log_content(self):
        """Test a symlinked log is archived as a file with the linked content"""
        runfolder = self._runfolder('100818_IL32_10371', ['RunInfo.xml'])
        target = os.path.join(self.tmpdir.name, 'elsewhere', 'real.log')
        write_file(target, 'real log\n')
        os.symlink(target, os.path.join(runfolder, 'linked.log'))

        object_id = self.archiver.publish_logs(runfolder, DEST_COLLECTION)

        with tarfile.open(
            fileobj=io.BytesIO(self.store.objects[object_id]), mode='r:xz'
        ) as tar:
            member = tar.getmember('linked.log')
            self.assertTrue(member.isfile())
            self.assertEqual(b'real log\n', tar.extractfile(member).read())

    def test_no_id_run(self):
        """Test a run folder without a run id is rejected"""
        runfolder = self._runfolder('logs_without_run_id', ['RunInfo.xml'])

        with self.assertRaises(ConfigurationError):
            self.archiver.publish_logs(runfolder, DEST_COLLECTION)
        self.assertEqual([], self.store.calls)

    def test_no_logs(self):
        """Test a run folder without logs is a staging error"""
        runfolder = self._runfolder('100818_IL32_10371', DATA_FILES)

        with self.assertRaises(StagingError):
            self.archiver.publish_logs(runfolder, DEST_COLLECTION)
        self.assertEqual([], self.store.calls)

    def test_incomplete_archive(self):
        """Test an archive missing members is a staging error"""
        runfolder = self._runfolder('100818_IL32_10371', ['a.log', 'b.log'])
        logs = [
            SourceFile(os.path.join(runfolder, name), FileKind.SEQUENCE, name)
            for name in ('a.log', 'b.log')
        ]
        archive_path = os.path.join(self.tmpdir.name, '10371_logs.tar.xz')

        with unittest.mock.patch.object(
            tarfile.TarFile, 'getnames', return_value=['a.log']
        ):
            with self.assertRaises(StagingError) as cm:
                self.archiver.create_archive(archive_path, logs)
        self.assertIn('missing b.log', str(cm.exception))
