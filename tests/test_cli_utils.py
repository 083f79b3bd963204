"""
Tests for the poremodel-utils subcommands.
"""
import pytest
import numpy as np

from poremodel.cli.utils import build_parser, main
from poremodel.core.model_io import load_model


class TestInspect:
    def test_text_model(self, dimer_model_path, capsys):
        main(['inspect', dimer_model_path])
        out = capsys.readouterr().out
        assert "Name: r9_template_test" in out
        assert "k: 2" in out
        assert "States: 16" in out
        assert "Baked: False" in out

    def test_fast5_model(self, dimer_fast5_path, capsys):
        main(['inspect', '--fast5', dimer_fast5_path, '--strand', '1', '--table'])
        out = capsys.readouterr().out
        assert "Baked: True" in out
        assert "Full table:" in out
        assert "level_log_stdv" in out

    def test_no_source(self, capsys):
        with pytest.raises(SystemExit):
            main(['inspect'])

    def test_invalid_model_exits(self, tmp_path, capsys):
        path = tmp_path / "bad.model"
        path.write_text("AA\t1\t1\t1\t1\n")
        with pytest.raises(SystemExit):
            main(['inspect', str(path)])
        assert "Incomplete model" in capsys.readouterr().err


class TestExtract:
    def test_writes_text_model(self, dimer_fast5_path, dimer_states, tmp_path):
        out = str(tmp_path / "t.model")
        main(['extract', dimer_fast5_path, '-o', out])
        model = load_model(out)
        assert model.name == 'r9_template_median68pA.model'
        np.testing.assert_array_equal(model.states, dimer_states)

    def test_name_override(self, dimer_fast5_path, tmp_path):
        out = str(tmp_path / "t.model")
        main(['extract', dimer_fast5_path, '-o', out, '--name', 'mine'])
        assert load_model(out).name == 'mine'

    def test_missing_input(self, tmp_path):
        with pytest.raises(SystemExit):
            main(['extract', str(tmp_path / "nope.fast5"), '-o', str(tmp_path / "x.model")])


class TestUpdate:
    def test_update(self, dimer_fast5_path, dimer_model_path, tmp_path, capsys):
        out = str(tmp_path / "u.model")
        main(['update', dimer_fast5_path, dimer_model_path, '-o', out])
        printed = capsys.readouterr().out
        assert "Updated shift=3.0000" in printed
        model = load_model(out)
        assert model.name == 'r9_template_test'
        assert model.shift_offset == 0.5


class TestParser:
    def test_no_command(self):
        with pytest.raises(SystemExit):
            main([])

    def test_version(self, capsys):
        with pytest.raises(SystemExit):
            build_parser().parse_args(['--version'])
        assert 'poremodel-utils' in capsys.readouterr().out
