"""Tests for CLI module."""

import os

import pytest

from imgopt.cli import create_parser, get_config, get_formats, main
from imgopt.derivative import TargetFormat


class TestCreateParser:
    """Tests for argument parser creation."""
    
    def test_parser_created(self):
        """Test parser is created successfully."""
        assert create_parser() is not None
    
    def test_convert_command(self):
        """Test convert command parsing."""
        parser = create_parser()
        args = parser.parse_args([
            'convert', '/images/extra.png', '--web-root', '/var/www',
            '-s', '576', '-s', '768', '--format', 'avif', '--recreate',
        ])
        
        assert args.command == 'convert'
        assert args.src == '/images/extra.png'
        assert args.size == [576, 768]
        assert args.format == ['avif']
        assert args.recreate is True
    
    def test_batch_command(self):
        """Test batch command parsing."""
        parser = create_parser()
        args = parser.parse_args(['batch', '--web-root', '/var/www', '-w', '4', '-n', '--show-files'])
        
        assert args.command == 'batch'
        assert args.workers == 4
        assert args.dry_run is True
        assert args.show_files is True
    
    def test_unknown_format_rejected(self):
        """Test format choices are enforced."""
        with pytest.raises(SystemExit):
            create_parser().parse_args(['convert', 'a.png', '--format', 'gif'])


class TestHelpers:
    """Tests for argument helpers."""
    
    def test_get_config_overrides(self, monkeypatch, tmp_path):
        """Test CLI flags override the environment."""
        monkeypatch.setenv('IMGOPT_SIZES', '100')
        args = create_parser().parse_args([
            'convert', 'a.png', '--web-root', str(tmp_path), '-s', '576', '--disable', '--deadline', '3',
        ])
        
        config = get_config(args)
        
        assert config.web_root == str(tmp_path)
        assert config.sizes == [576]
        assert config.disabled is True
        assert config.deadline_seconds == 3.0
    
    def test_get_formats_default_and_dedup(self):
        """Test formats default to WEBP and are de-duplicated."""
        parser = create_parser()
        
        assert get_formats(parser.parse_args(['convert', 'a.png'])) == [TargetFormat.WEBP]
        args = parser.parse_args(['convert', 'a.png', '--format', 'avif', '--format', 'avif', '--format', 'webp'])
        assert get_formats(args) == [TargetFormat.AVIF, TargetFormat.WEBP]


class TestMain:
    """Tests for main entry point."""
    
    def test_no_command(self):
        """Test running without command shows help."""
        assert main([]) == 1
    
    def test_convert(self, extra_png, web_root, capsys):
        """Test converting one source prints derivative paths."""
        result = main(['convert', '/images/product/extra.png', '--web-root', web_root, '-s', '576'])
        
        assert result == 0
        out = capsys.readouterr().out
        assert '576w -> /images/product/webp/extra@576x413.webp' in out
        assert 'full -> /images/product/webp/extra.webp' in out
    
    def test_convert_missing_source(self, web_root, capsys):
        """Test a missing source falls back to the original."""
        result = main(['convert', '/nope.png', '--web-root', web_root])
        
        assert result == 0
        assert 'original (missing_source' in capsys.readouterr().out
    
    def test_convert_invalid_web_root(self, tmp_path):
        """Test an invalid web root is an error."""
        assert main(['convert', '/a.png', '--web-root', str(tmp_path / 'missing')]) == 1
    
    def test_batch_requires_web_root(self, monkeypatch):
        """Test batch refuses to run without a web root."""
        monkeypatch.delenv('IMGOPT_WEB_ROOT', raising=False)
        
        assert main(['batch']) == 1
    
    def test_batch(self, extra_png, web_root, capsys):
        """Test batch conversion over a web root."""
        result = main(['batch', '--web-root', web_root, '-s', '576'])
        
        assert result == 0
        assert os.path.exists(os.path.join(web_root, 'images', 'product', 'webp', 'extra@576x413.webp'))
        assert 'Encoded: 2' in capsys.readouterr().out
    
    def test_probe(self, capsys):
        """Test probing encoders."""
        assert main(['probe']) == 0
        assert 'WEBP: available' in capsys.readouterr().out
