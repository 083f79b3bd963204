"""
Package consistency tests.

Verify that the public API is importable from the package root and the
subpackages, and that the re-exports refer to the same objects.
"""
import pytest


class TestPackageImports:
    def test_root_imports(self):
        import poremodel
        from poremodel import (
            PoreModel,
            KmerState,
            ScaledKmerState,
            CalibrationCoefficients,
            ModelConfig,
            ModelValidationError,
            NumericAnomalyError,
            load_model,
            save_model,
            load_model_from_fast5,
        )
        assert poremodel.__version__
        assert callable(load_model)
        assert callable(save_model)
        assert callable(load_model_from_fast5)

    def test_core_reexports(self):
        import poremodel.core as core
        from poremodel.core.model import PoreModel
        from poremodel.core.model_io import load_model
        assert core.PoreModel is PoreModel
        assert core.load_model is load_model

    def test_cli_import(self):
        from poremodel.cli.utils import main, cmd_inspect, cmd_extract, cmd_update
        assert callable(main)
        assert callable(cmd_inspect)
        assert callable(cmd_extract)
        assert callable(cmd_update)


class TestErrorHierarchy:
    def test_builtin_bases(self):
        from poremodel.core.errors import (
            PoreModelError,
            ModelValidationError,
            NumericAnomalyError,
            Fast5FormatError,
            NumericAnomalyWarning,
        )
        assert issubclass(ModelValidationError, ValueError)
        assert issubclass(ModelValidationError, PoreModelError)
        assert issubclass(NumericAnomalyError, ArithmeticError)
        assert issubclass(Fast5FormatError, OSError)
        assert issubclass(NumericAnomalyWarning, RuntimeWarning)

    def test_validation_error_message(self):
        from poremodel.core.errors import ModelValidationError
        e = ModelValidationError("bad row", source="m.model", line_number=4)
        assert str(e) == "m.model:4: bad row"
        assert str(ModelValidationError("bad")) == "bad"
