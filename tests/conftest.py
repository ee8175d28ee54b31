import json

import pytest

from popest.client import OnsClient

BASE_URL = "http://ons.test/v1"
VERSION_PATH = "/datasets/pop-est/editions/time-series/versions/2"


class FakeResponse:
    def __init__(self, status_code: int = 200, payload=None, text: str | None = None):
        self.status_code = status_code
        self.text = text if text is not None else json.dumps(payload)

    def json(self):
        return json.loads(self.text)


class FakeSession:
    """
    In-memory stand-in for requests.Session.

    `routes` maps an API path (without the base URL) to a payload, a
    FakeResponse, or a callable taking the query params and returning either.
    Unknown paths answer 404.
    """

    def __init__(self, routes: dict):
        self.routes = routes
        self.calls: list[tuple[str, dict]] = []
        self.headers: list[dict] = []
        self.closed = False

    def get(self, url, params=None, headers=None, timeout=None):
        path = url.split("/v1", 1)[1]
        params = dict(params or {})
        self.calls.append((path, params))
        self.headers.append(dict(headers or {}))
        route = self.routes.get(path)
        if route is None:
            return FakeResponse(404, text=f"not found: {path}")
        if callable(route):
            route = route(params)
        if isinstance(route, FakeResponse):
            return route
        return FakeResponse(200, route)

    def close(self):
        self.closed = True

    def calls_to(self, suffix: str) -> list[dict]:
        return [params for path, params in self.calls if path.endswith(suffix)]


def paged(items: list[dict]):
    """Route serving `items` with limit/offset/total_count like the ONS listings."""

    def route(params):
        limit = int(params.get("limit", len(items) or 1))
        offset = int(params.get("offset", 0))
        page = items[offset: offset + limit]
        return {
            "items": page,
            "count": len(page),
            "limit": limit,
            "offset": offset,
            "total_count": len(items),
        }

    return route


def observation_payload(value, period: str = "2022"):
    return {
        "observations": [
            {"observation": value, "dimensions": {"time": {"id": period, "label": period}}}
        ]
    }


SEX_OPTIONS = [
    {"option": "1", "label": "Male"},
    {"option": "2", "label": "Female"},
    {"option": "7", "label": "All persons"},
]
TIME_OPTIONS = [
    {"option": "2020", "label": "2020"},
    {"option": "2022", "label": "2022"},
    {"option": "2021", "label": "2021"},
]
DIMENSIONS = [
    {"id": "geography", "label": "Geography"},
    {"id": "sex", "label": "Sex"},
    {"id": "age", "label": "Age"},
    {"id": "time", "label": "Time"},
]


def build_routes(age_options: list[dict], values_by_age: dict) -> dict:
    """
    Routes for the reference scenario: dataset "pop-est", edition
    "time-series", versions 1 and 2, observation value keyed by age option.
    """

    def observations(params):
        value = values_by_age.get(params.get("age"))
        if value is None:
            return {"observations": []}
        return observation_payload(value, params.get("time", ""))

    return {
        "/search": {
            "items": [
                {
                    "uri": "/datasets/pop-est",
                    "description": {
                        "dataset_id": "pop-est",
                        "title": "Population estimates for local authorities",
                    },
                }
            ]
        },
        "/datasets/pop-est/editions": {
            "items": [{"edition": "time-series", "last_updated": "2023-01-01T00:00:00.000Z"}]
        },
        "/datasets/pop-est/editions/time-series/versions": {
            "items": [{"version": "1"}, {"version": "2"}]
        },
        VERSION_PATH: {"dimensions": DIMENSIONS},
        f"{VERSION_PATH}/dimensions/sex/options": paged(SEX_OPTIONS),
        f"{VERSION_PATH}/dimensions/age/options": paged(age_options),
        f"{VERSION_PATH}/dimensions/time/options": paged(TIME_OPTIONS),
        f"{VERSION_PATH}/observations": observations,
    }


@pytest.fixture
def aggregate_routes() -> dict:
    """Age dimension with an 'All ages' option observed as 45000."""
    age_options = [
        {"option": "0", "label": "0"},
        {"option": "all", "label": "All ages"},
        {"option": "1", "label": "1"},
    ]
    return build_routes(age_options, {"all": "45000", "0": "10", "1": "12"})


@pytest.fixture
def single_year_routes() -> dict:
    """Age dimension with only single-year options 0 and 1 (10 and 12)."""
    age_options = [{"option": "0", "label": "0"}, {"option": "1", "label": "1"}]
    return build_routes(age_options, {"0": "10", "1": "12"})


@pytest.fixture
def make_client():
    def _make(routes: dict, page_size: int = 1000):
        session = FakeSession(routes)
        return OnsClient(BASE_URL, session=session, page_size=page_size), session

    return _make
