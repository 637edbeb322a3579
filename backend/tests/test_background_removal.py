import io

from PIL import Image

from app.services.background_removal_service import BackgroundRemovalService


def _png_bytes(mode: str = "RGB") -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, (8, 8), "white").save(buffer, format="PNG")
    return buffer.getvalue()


def test_remove_background_returns_rgba_png(monkeypatch):
    service = BackgroundRemovalService(model_name="u2net")
    seen = []

    def fake_remove(image):
        seen.append(image.size)
        return image.copy()

    monkeypatch.setattr(service, "_remove", fake_remove)

    output = service.remove_background(_png_bytes())

    with Image.open(io.BytesIO(output)) as result:
        assert result.format == "PNG"
        assert result.mode == "RGBA"
        assert result.size == (8, 8)
    assert seen == [(8, 8)]


def test_session_is_not_created_until_needed():
    service = BackgroundRemovalService(model_name="isnet-general-use")

    assert service.model_name == "isnet-general-use"
    assert service._session is None
