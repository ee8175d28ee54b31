import pytest
from stairval.notepad import create_notepad

from conftest import VERSION_PATH, observation_payload
from popest.dimension import DimensionOption, DimensionRoles
from popest.errors import ApiError, NoObservationError
from popest.fetcher import build_filters, fetch_observation, sum_age_observations

ROLES = DimensionRoles(sex="sex", age="age", time="time", geography="geography")
OBS_PATH = f"{VERSION_PATH}/observations"


def test_fetch_observation_reads_observation_field(make_client):
    client, session = make_client({OBS_PATH: observation_payload("45000")})
    filters = build_filters(ROLES, "E07000046", "7", "all", "2022")
    observed = fetch_observation(client, VERSION_PATH, filters, "time", "fallback")

    assert observed.value == 45000
    assert observed.period_label == "2022"
    assert session.calls[0][1] == {"geography": "E07000046", "sex": "7", "age": "all", "time": "2022"}


def test_fetch_observation_reads_value_field_and_default_label(make_client):
    client, _ = make_client({OBS_PATH: {"observations": [{"observation": None, "value": 12.5}]}})
    observed = fetch_observation(client, VERSION_PATH, {}, "time", "2022")
    assert observed.value == 12.5
    assert observed.period_label == "2022"


@pytest.mark.parametrize(
    "payload",
    [
        {"observations": []},
        {},
        {"observations": [{"observation": None, "value": None}]},
        {"observations": [{"observation": ".."}]},
    ],
)
def test_fetch_observation_without_value_raises(make_client, payload):
    client, _ = make_client({OBS_PATH: payload})
    with pytest.raises(NoObservationError):
        fetch_observation(client, VERSION_PATH, {}, "time", "2022")


def test_sum_age_observations_counts_missing_as_zero(make_client):
    values = {"0": "10", "1": "12", "2": None}

    def route(params):
        value = values[params["age"]]
        return observation_payload(value) if value is not None else {"observations": []}

    client, session = make_client({OBS_PATH: route})
    notepad = create_notepad("sum")
    ages = [DimensionOption("0", "0"), DimensionOption("1", "1"), DimensionOption("2", "2")]

    observed = sum_age_observations(client, VERSION_PATH, ROLES, "E07000046", "7", "2022", ages, "2022", notepad)

    assert observed.value == 22
    assert len(session.calls_to("/observations")) == 3
    assert notepad.has_warnings(include_subsections=True)


def test_sum_age_observations_aborts_on_request_error(make_client):
    client, _ = make_client({})
    with pytest.raises(ApiError):
        sum_age_observations(
            client, VERSION_PATH, ROLES, "E07000046", "7", "2022",
            [DimensionOption("0", "0")], "2022", create_notepad("sum"),
        )


def test_fetch_observation_nan_raises(make_client):
    client, _ = make_client({OBS_PATH: observation_payload("NaN")})
    with pytest.raises(NoObservationError):
        fetch_observation(client, VERSION_PATH, {}, "time", "2022")


def test_sum_age_observations_counts_nan_as_zero(make_client):
    values = {"0": "10", "1": "NaN"}
    client, _ = make_client({OBS_PATH: lambda params: observation_payload(values[params["age"]])})
    notepad = create_notepad("sum")
    ages = [DimensionOption("0", "0"), DimensionOption("1", "1")]

    observed = sum_age_observations(client, VERSION_PATH, ROLES, "E07000046", "7", "2022", ages, "2022", notepad)

    assert observed.value == 10
    assert notepad.has_warnings(include_subsections=True)
