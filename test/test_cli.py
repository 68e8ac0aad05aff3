import tempfile
import unittest
import unittest.mock
from types import SimpleNamespace

from click.testing import CliRunner

from seqpublish.cli import analysis_main, logs_main, publish_analysis, publish_logs
from seqpublish.models import PublishResult
from seqpublish.services import PublishLogger


class TestPublishAnalysisCli(unittest.TestCase):
    """Test the analysis publishing command"""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()  # pylint: disable=R1732
        self.runner = CliRunner()

    def tearDown(self):
        self.tmpdir.cleanup()

    @unittest.mock.patch('seqpublish.cli.publish_isoseq_analysis.publish_analysis')
    def test_main(self, mock_publish):
        """Test options are passed through and the result is reported"""
        mock_publish.return_value = PublishResult(9, 9, 0)

        result = self.runner.invoke(
            analysis_main,
            [
                '--runfolder-path',
                self.tmpdir.name,
                '--analysis-id',
                'a1234',
                '--dest-collection',
                'gs://cpg-pacbio-test/isoseq',
                '--single-cell',
            ],
        )

        self.assertEqual(0, result.exit_code, result.output)
        self.assertIn('Processed 9 / 9 files with 0 errors', result.output)
        config_args = mock_publish.call_args.args[0]
        self.assertEqual('a1234', config_args.analysis_id)
        self.assertTrue(config_args.single_cell)
        self.assertIsNone(config_args.log_file)

    @unittest.mock.patch('seqpublish.cli.publish_isoseq_analysis.publish_analysis')
    def test_main_with_errors(self, mock_publish):
        """Test errors give a non-zero exit code"""
        mock_publish.return_value = PublishResult(9, 8, 1)

        result = self.runner.invoke(
            analysis_main,
            ['-r', self.tmpdir.name, '-a', 'a1234', '-d', 'gs://cpg-pacbio-test'],
        )

        self.assertEqual(1, result.exit_code)
        self.assertIn('Processed 8 / 9 files with 1 errors', result.output)

    def test_main_requires_analysis_id(self):
        """Test the analysis id is required"""
        result = self.runner.invoke(analysis_main, ['-r', self.tmpdir.name])
        self.assertEqual(2, result.exit_code)

    @unittest.mock.patch('seqpublish.models.value_objects.config_retrieve')
    @unittest.mock.patch('seqpublish.cli.publish_isoseq_analysis.PublishOrchestrator')
    @unittest.mock.patch('seqpublish.cli.publish_isoseq_analysis.RegistryDataAccess')
    @unittest.mock.patch('seqpublish.cli.publish_isoseq_analysis.StorageClient')
    @unittest.mock.patch('seqpublish.cli.publish_isoseq_analysis.config_retrieve')
    def test_publish_analysis(
        self, mock_config, mock_storage, mock_registry, mock_orchestrator, mock_defaults
    ):  # pylint: disable=too-many-arguments
        """Test the collaborators are wired up from the config"""
        mock_config.return_value = 'cpg-test'
        mock_defaults.side_effect = lambda key, default=None: default
        mock_orchestrator.return_value.publish_files.return_value = PublishResult(
            2, 2, 0
        )

        result = publish_analysis(
            SimpleNamespace(
                runfolder_path=self.tmpdir.name,
                analysis_id='a1234',
                dest_collection='gs://cpg-pacbio-test/isoseq',
                single_cell=False,
                log_file=None,
            )
        )

        self.assertEqual((2, 2, 0), result.as_tuple())
        mock_storage.assert_called_once_with(project='cpg-test')
        kwargs = mock_orchestrator.call_args.kwargs
        self.assertEqual('a1234', kwargs['config'].analysis_id)
        self.assertIs(mock_storage.return_value, kwargs['store'])
        self.assertIs(mock_registry.return_value, kwargs['registry'])


class TestPublishLogsCli(unittest.TestCase):
    """Test the log archiving command"""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()  # pylint: disable=R1732
        self.runner = CliRunner()

    def tearDown(self):
        self.tmpdir.cleanup()

    @unittest.mock.patch('seqpublish.cli.publish_run_logs.publish_logs')
    def test_main(self, mock_publish):
        """Test the published archive is reported"""
        mock_publish.return_value = 'gs://cpg-illumina-test/logs/999_logs.tar.xz'

        result = self.runner.invoke(
            logs_main,
            [
                '--runfolder-path',
                self.tmpdir.name,
                '--id-run',
                '999',
                '--dest-collection',
                'gs://cpg-illumina-test/logs',
            ],
        )

        self.assertEqual(0, result.exit_code, result.output)
        self.assertIn(
            'Published gs://cpg-illumina-test/logs/999_logs.tar.xz', result.output
        )
        self.assertEqual(999, mock_publish.call_args.args[0].id_run)

    def test_main_rejects_non_integer_id_run(self):
        """Test the run id must be an integer"""
        result = self.runner.invoke(
            logs_main, ['-r', self.tmpdir.name, '--id-run', 'abc']
        )
        self.assertEqual(2, result.exit_code)

    @unittest.mock.patch('seqpublish.models.value_objects.config_retrieve')
    @unittest.mock.patch('seqpublish.cli.publish_run_logs.LogArchiver')
    @unittest.mock.patch('seqpublish.cli.publish_run_logs.StorageClient')
    @unittest.mock.patch('seqpublish.cli.publish_run_logs.config_retrieve')
    def test_publish_logs(
        self, mock_config, mock_storage, mock_archiver, mock_defaults
    ):
        """Test the archiver is called with the configuration"""
        mock_config.return_value = None
        mock_defaults.side_effect = lambda key, default=None: default
        mock_archiver.return_value.publish_logs.return_value = 'object-id'

        object_id = publish_logs(
            SimpleNamespace(
                runfolder_path=self.tmpdir.name,
                id_run=None,
                dest_collection='gs://cpg-illumina-test/logs',
            )
        )

        self.assertEqual('object-id', object_id)
        archiver_args = mock_archiver.call_args
        self.assertIs(mock_storage.return_value, archiver_args.args[0])
        self.assertIsInstance(archiver_args.kwargs['publish_logger'], PublishLogger)
        mock_archiver.return_value.publish_logs.assert_called_once_with(
            self.tmpdir.name, 'gs://cpg-illumina-test/logs', id_run=None
        )
