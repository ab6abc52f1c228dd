"""
Unit tests for the fitbot-estimate CLI.
"""
from fitbot.cli import main
from fitbot.services.llm import CompletionRequestError
from tests.fixtures.mocks import MockProvider


class TestEstimateCli:
    def test_prints_rendered_estimate(self, tmp_path, capsys):
        image = tmp_path / "plate.jpg"
        image.write_bytes(b"\xff\xd8\xff")
        provider = MockProvider()

        code = main([str(image), "--caption", "chicken and rice"], provider=provider)

        assert code == 0
        assert "Calories: 300–450 kcal" in capsys.readouterr().out
        assert "Caption: chicken and rice" in provider.calls[0]["instruction"]
        assert provider.closed

    def test_missing_image(self, tmp_path, capsys):
        code = main([str(tmp_path / "missing.jpg")], provider=MockProvider())

        assert code == 1
        assert "image not found" in capsys.readouterr().out

    def test_unparsable_reply(self, tmp_path, capsys):
        image = tmp_path / "plate.jpg"
        image.write_bytes(b"\xff\xd8\xff")

        code = main([str(image)], provider=MockProvider(reply="no idea"))

        assert code == 1
        assert "Could not estimate" in capsys.readouterr().out

    def test_disabled_provider(self, tmp_path, capsys):
        image = tmp_path / "plate.jpg"
        image.write_bytes(b"\xff\xd8\xff")

        provider = MockProvider(enabled=False)

        code = main([str(image)], provider=provider)

        assert code == 1
        assert "API key missing" in capsys.readouterr().out
        assert provider.closed

    def test_provider_error(self, tmp_path, capsys):
        image = tmp_path / "plate.jpg"
        image.write_bytes(b"\xff\xd8\xff")
        provider = MockProvider()
        provider.set_error(CompletionRequestError(502, "bad gateway"))

        code = main([str(image)], provider=provider)

        assert code == 1
        assert "502" in capsys.readouterr().out
        assert provider.closed
