import logging
import os
import tempfile
import unittest
import unittest.mock

from seqpublish.exceptions import StoreError
from seqpublish.models import MetadataAttribute, MetadataRecord, PublishResult
from seqpublish.services import FilePublisher, PublishLogger

from test.publish_fakes import InMemoryObjectStore, write_file

DEST = 'gs://cpg-pacbio-test/isoseq/1_B01/a1234'


class TestFilePublisher(unittest.TestCase):
    """Test uploading files with metadata"""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()  # pylint: disable=R1732
        self.files = []
        for name in ('a.bam', 'b.bam', 'c.log'):
            path = os.path.join(self.tmpdir.name, name)
            write_file(path, name)
            self.files.append(path)

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_publish_files(self):
        """Test each file is uploaded into the collection with metadata"""
        store = InMemoryObjectStore()
        metadata = MetadataRecord.build({MetadataAttribute.RUN: 'RUN'})

        result = FilePublisher(store).publish_files(self.files, DEST, metadata)

        self.assertEqual(PublishResult(3, 3, 0), result)
        self.assertEqual(
            [f'{DEST}/a.bam', f'{DEST}/b.bam', f'{DEST}/c.log'], sorted(store.objects)
        )
        self.assertEqual({'run': 'RUN'}, store.get_metadata(f'{DEST}/a.bam'))
        self.assertEqual(('create_collection', DEST), store.calls[0])

    def test_no_metadata(self):
        """Test empty metadata is not attached"""
        store = InMemoryObjectStore()

        FilePublisher(store).publish_files(self.files[:1], DEST)

        self.assertNotIn(('attach_metadata', f'{DEST}/a.bam'), store.calls)

    def test_failure_does_not_stop_other_files(self):
        """Test one failed upload is counted and the rest are published"""
        store = InMemoryObjectStore(failing_names=('b.bam',))

        result = FilePublisher(store).publish_files(self.files, DEST)

        self.assertEqual((3, 2, 1), result.as_tuple())
        self.assertEqual([f'{DEST}/a.bam', f'{DEST}/c.log'], sorted(store.objects))

    def test_collection_failure(self):
        """Test every file is an error if the collection cannot be created"""
        store = unittest.mock.MagicMock()
        store.create_collection.side_effect = StoreError('denied')

        result = FilePublisher(store).publish_files(self.files, DEST)

        self.assertEqual((3, 0, 3), result.as_tuple())
        store.put_object.assert_not_called()

    def test_no_files(self):
        """Test nothing is done for no files"""
        store = InMemoryObjectStore()

        self.assertEqual(PublishResult(), FilePublisher(store).publish_files([], DEST))
        self.assertEqual([], store.calls)


class TestPublishLogger(unittest.TestCase):
    """Test run logging"""

    def test_log_file(self):
        """Test messages are also written to the log file"""
        with tempfile.TemporaryDirectory() as tmpdir:
            log_file = os.path.join(tmpdir, 'publish.log')
            publish_logger = PublishLogger(
                'a1234', 'seqpublish.test_log_file', log_file=log_file
            )

            stats = publish_logger.log_result_summary(PublishResult(9, 8, 1))
            for handler in publish_logger.logger.logger.handlers:
                handler.flush()

            with open(log_file, encoding='utf-8') as f:
                content = f.read()

            for handler in list(publish_logger.logger.logger.handlers):
                handler.close()
                publish_logger.logger.logger.removeHandler(handler)

        self.assertEqual(
            {'files_seen': 9, 'files_processed': 8, 'errors': 1}, stats
        )
        self.assertIn('a1234 :: Files published:     8', content)
        self.assertIn('Publish Summary', content)

    def test_handlers_are_not_duplicated(self):
        """Test the same logger is set up once"""
        first = PublishLogger('a1', 'seqpublish.test_handlers')
        second = PublishLogger('a2', 'seqpublish.test_handlers')

        self.assertIs(first.logger.logger, second.logger.logger)
        self.assertEqual(1, len(second.logger.logger.handlers))
        self.assertEqual({'label': 'a2'}, second.logger.extra)

    def test_later_logger_gets_its_own_file_and_level(self):
        """Test a logger set up again still writes to its log file"""
        name = 'seqpublish.test_later_logger'
        PublishLogger('a1', name)
        with tempfile.TemporaryDirectory() as tmpdir:
            log_file = os.path.join(tmpdir, 'publish.log')
            publish_logger = PublishLogger('a2', name, log_file=log_file, level='DEBUG')
            again = PublishLogger('a2', name, log_file=log_file, level='DEBUG')

            publish_logger.logger.debug('staging details')
            handlers = list(publish_logger.logger.logger.handlers)
            for handler in handlers:
                handler.flush()

            with open(log_file, encoding='utf-8') as f:
                content = f.read()

            for handler in handlers:
                handler.close()
                publish_logger.logger.logger.removeHandler(handler)

        self.assertIs(publish_logger.logger.logger, again.logger.logger)
        self.assertEqual(2, len(handlers))
        self.assertIn('a2 :: staging details', content)
        self.assertEqual(logging.DEBUG, publish_logger.logger.logger.level)
