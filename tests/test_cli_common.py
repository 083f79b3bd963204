"""
Tests for poremodel.cli.common argument factories.
"""
import pytest
import argparse

from poremodel.cli.common import (
    add_alphabet_args,
    add_output_args,
    add_strand_args,
    add_strict_args,
    add_verbose_args,
    config_from_args,
)


class TestAddAlphabetArgs:
    def test_default(self):
        parser = argparse.ArgumentParser()
        add_alphabet_args(parser)
        assert parser.parse_args([]).alphabet == 'dna'

    def test_choice(self):
        parser = argparse.ArgumentParser()
        add_alphabet_args(parser)
        assert parser.parse_args(['-a', 'methyl-cytosine']).alphabet == 'methyl-cytosine'

    def test_invalid_choice(self):
        parser = argparse.ArgumentParser()
        add_alphabet_args(parser)
        with pytest.raises(SystemExit):
            parser.parse_args(['--alphabet', 'rna'])


class TestAddStrandArgs:
    def test_defaults(self):
        parser = argparse.ArgumentParser()
        add_strand_args(parser)
        args = parser.parse_args([])
        assert args.strand == 0
        assert args.basecall_group == 'Basecall_1D_000'
        assert args.model_prefix == '/opt/chimaera/model/'

    def test_complement(self):
        parser = argparse.ArgumentParser()
        add_strand_args(parser, default=1)
        assert parser.parse_args([]).strand == 1
        assert parser.parse_args(['-s', '0']).strand == 0

    def test_invalid_strand(self):
        parser = argparse.ArgumentParser()
        add_strand_args(parser)
        with pytest.raises(SystemExit):
            parser.parse_args(['--strand', '2'])


class TestAddOutputArgs:
    def test_required(self):
        parser = argparse.ArgumentParser()
        add_output_args(parser)
        with pytest.raises(SystemExit):
            parser.parse_args([])

    def test_optional(self):
        parser = argparse.ArgumentParser()
        add_output_args(parser, required=False)
        assert parser.parse_args([]).output is None


class TestFlags:
    def test_verbose(self):
        parser = argparse.ArgumentParser()
        add_verbose_args(parser)
        assert parser.parse_args(['-v']).verbose is True
        assert parser.parse_args([]).verbose is False

    def test_strict(self):
        parser = argparse.ArgumentParser()
        add_strict_args(parser)
        assert parser.parse_args(['--strict']).strict is True


class TestConfigFromArgs:
    def test_full(self):
        parser = argparse.ArgumentParser()
        add_alphabet_args(parser)
        add_strand_args(parser)
        add_strict_args(parser)
        args = parser.parse_args(['-a', 'methyl-cytosine', '--basecall-group', 'Basecall_1D_001',
                                  '--model-prefix', '', '--strict'])
        config = config_from_args(args)
        assert config.alphabet == 'methyl-cytosine'
        assert config.basecall_group == 'Basecall_1D_001'
        assert config.model_path_prefix == ''
        assert config.strict_numeric is True

    def test_missing_args_use_defaults(self):
        config = config_from_args(argparse.Namespace())
        assert config.alphabet == 'dna'
        assert config.strict_numeric is False
