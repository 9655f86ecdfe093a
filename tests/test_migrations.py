import importlib.util
import os
import tempfile
import unittest

from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import create_engine, inspect

from memorial.config import REPO_ROOT
from memorial.models import Base

REVISION_PATH = REPO_ROOT / "migrations" / "versions" / "0001_initial_schema.py"


def load_revision():
    spec = importlib.util.spec_from_file_location("initial_schema", REVISION_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestInitialSchemaRevision(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.engine = create_engine(f"sqlite:///{os.path.join(self.tmpdir.name, 'migrated.sqlite')}")
        self.revision = load_revision()

    def tearDown(self):
        self.engine.dispose()
        self.tmpdir.cleanup()

    def run_step(self, step):
        with self.engine.begin() as conn:
            ctx = MigrationContext.configure(conn)
            with Operations.context(ctx):
                step()

    def test_upgrade_matches_models(self):
        self.run_step(self.revision.upgrade)
        inspector = inspect(self.engine)
        self.assertEqual(set(inspector.get_table_names()), set(Base.metadata.tables))

        for name, table in Base.metadata.tables.items():
            migrated = {col["name"] for col in inspector.get_columns(name)}
            self.assertEqual(migrated, set(table.columns.keys()), name)

        email_index = [ix for ix in inspector.get_indexes("users") if ix["column_names"] == ["email"]]
        self.assertTrue(email_index and email_index[0]["unique"])

    def test_downgrade_drops_everything(self):
        self.run_step(self.revision.upgrade)
        self.run_step(self.revision.downgrade)
        self.assertEqual(inspect(self.engine).get_table_names(), [])

    def test_revision_identifiers(self):
        self.assertEqual(self.revision.revision, "0001_initial_schema")
        self.assertIsNone(self.revision.down_revision)
