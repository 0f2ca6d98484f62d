"""Tests for terminal output sanitizing."""

from jumpserver_inventory.jumpserver.sanitizer import strip_ansi


class TestStripAnsi:
    def test_removes_color_codes(self):
        assert strip_ansi("\x1b[1;32mdemo-app-01\x1b[0m") == "demo-app-01"

    def test_removes_cursor_and_mode_sequences(self):
        raw = "\x1b[?25l\x1b[2J\x1b[HOpt> \x1b[?25h"
        assert strip_ansi(raw) == "Opt> "

    def test_removes_window_title(self):
        assert strip_ansi("\x1b]0;koko\x07[Host]>") == "[Host]>"

    def test_keeps_line_breaks_and_tabs(self):
        text = "a\tb\r\nc\n"
        assert strip_ansi(text) == text

    def test_clean_text_is_unchanged(self):
        text = "  1  | demo-db-01 | 198.51.100.20 | Linux | 页码：1，每页行数：15"
        assert strip_ansi(text) == text
        assert strip_ansi(strip_ansi(text)) == text

    def test_drops_stray_control_characters(self):
        assert strip_ansi("Opt\x07>\x00") == "Opt>"

    def test_empty_string(self):
        assert strip_ansi("") == ""

    def test_cursor_home_does_not_eat_following_text(self):
        assert strip_ansi("\x1b[HOpt> ") == "Opt> "

    def test_removes_charset_and_keypad_sequences(self):
        assert strip_ansi("\x1b(B\x1b=\x1b>[Host]>") == "[Host]>"
