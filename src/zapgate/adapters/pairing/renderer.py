"""Code Renderer: converte o pairing code em QR code exibível.

Usado pela camada HTTP (/qr) e pelo bootstrap (QR no terminal); o core só
guarda o dado bruto.
"""

from __future__ import annotations

import base64
import html
import io

import qrcode

PAIRING_PAGE_REFRESH_SECONDS = 15


def _build_qr(data: str) -> qrcode.QRCode:
    qr = qrcode.QRCode(
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=4,
    )
    qr.add_data(data)
    qr.make(fit=True)
    return qr


def render_qr_png(data: str) -> bytes:
    """Gera PNG do QR code para `data`."""
    qr = _build_qr(data)
    img = qr.make_image(fill_color="#000000", back_color="#FFFFFF").convert("RGB")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def render_qr_ascii(data: str) -> str:
    """QR code em texto para leitura direto no terminal (deploy headless)."""
    buf = io.StringIO()
    _build_qr(data).print_ascii(out=buf, invert=True)
    return buf.getvalue()


def render_qr_data_url(data: str) -> str:
    """QR code como data URL (`data:image/png;base64,...`)."""
    encoded = base64.b64encode(render_qr_png(data)).decode("ascii")
    return f"data:image/png;base64,{encoded}"


def render_pairing_page(data_url: str, title: str = "WhatsApp QR Code") -> str:
    """Página HTML com instruções de pareamento e auto-refresh."""
    refresh_ms = PAIRING_PAGE_REFRESH_SECONDS * 1000
    return f"""<!DOCTYPE html>
<html>
  <head>
    <title>{html.escape(title)}</title>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <style>
      body {{ font-family: Arial; display: flex; flex-direction: column; align-items: center; padding: 20px; background: #f5f5f5; }}
      .container {{ background: white; padding: 30px; border-radius: 10px; box-shadow: 0 2px 10px rgba(0,0,0,0.1); }}
      h2 {{ color: #25D366; margin-bottom: 20px; }}
      img {{ max-width: 300px; border: 2px solid #25D366; border-radius: 10px; }}
      p {{ color: #666; text-align: center; margin-top: 15px; }}
      .status {{ background: #e3f2fd; padding: 10px; border-radius: 5px; margin-top: 20px; }}
    </style>
  </head>
  <body>
    <div class="container">
      <h2>📱 Scan QR Code with WhatsApp</h2>
      <img src="{html.escape(data_url)}" alt="QR Code" />
      <p><strong>Steps:</strong><br>
      1. Open WhatsApp on your phone<br>
      2. Go to Settings → Linked Devices<br>
      3. Tap "Link a Device"<br>
      4. Scan this QR code</p>
      <div class="status">
        🔄 Page will refresh automatically in {PAIRING_PAGE_REFRESH_SECONDS} seconds
      </div>
    </div>
    <script>setTimeout(() => location.reload(), {refresh_ms});</script>
  </body>
</html>
"""
