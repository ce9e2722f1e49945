from tour_router.config import Settings


def test_allowed_origins_accept_comma_separated_env(monkeypatch):
    monkeypatch.setenv("TOUR_FRONTEND_ALLOWED_ORIGINS", "https://a.example, https://b.example,")

    assert Settings().frontend_allowed_origins == ("https://a.example", "https://b.example")


def test_allowed_origins_accept_a_list():
    settings = Settings(frontend_allowed_origins=["https://a.example"])
    assert settings.frontend_allowed_origins == ("https://a.example",)


def test_tunables_read_from_environment(monkeypatch):
    monkeypatch.setenv("TOUR_AVERAGE_SPEED_KMH", "80")
    monkeypatch.setenv("TOUR_CACHE_TTL_SECONDS", "60")

    settings = Settings()

    assert settings.average_speed_kmh == 80.0
    assert settings.cache_ttl_seconds == 60.0
