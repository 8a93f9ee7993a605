"""Testes do renderizador de QR code."""

from __future__ import annotations

import base64

from zapgate.adapters.pairing.renderer import (
    render_pairing_page,
    render_qr_ascii,
    render_qr_data_url,
    render_qr_png,
)

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


class TestQrRenderer:
    def test_png_bytes(self) -> None:
        assert render_qr_png("2@ref,key1,key2,key3").startswith(PNG_MAGIC)

    def test_data_url(self) -> None:
        url = render_qr_data_url("2@ref,key1,key2,key3")
        assert url.startswith("data:image/png;base64,")
        raw = base64.b64decode(url.split(",", 1)[1])
        assert raw.startswith(PNG_MAGIC)

    def test_page_embeds_image_and_refresh(self) -> None:
        page = render_pairing_page("data:image/png;base64,AAAA")
        assert '<img src="data:image/png;base64,AAAA"' in page
        assert "location.reload()" in page
        assert "15000" in page

    def test_page_title_is_escaped(self) -> None:
        page = render_pairing_page("data:,", title="<script>")
        assert "<title>&lt;script&gt;</title>" in page

    def test_ascii_for_terminal(self) -> None:
        text = render_qr_ascii("2@ref,key1,key2,key3")
        lines = text.splitlines()
        assert len(lines) > 10
        assert any(ch in text for ch in "█▀▄")
