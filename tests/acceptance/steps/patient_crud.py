"""Step definitions for the patient CRUD feature."""

import json

from pytest_bdd import given, parsers, then, when

from tests.acceptance.conftest import ResponseContext
from tests.conftest import Client


@given("the API is running with an empty store")
def check_api_is_running(client: Client) -> None:
    assert client.send_health_check().status_code == 200
    assert client.list_patient_ids().status_code == 204


@given(parsers.parse("a patient has been created with body '{body}'"))
def create_patient_precondition(client: Client, body: str) -> None:
    response = client.create_patient(json.loads(body))
    assert response.status_code == 201


@when(parsers.parse("I create a patient with body '{body}'"))
def create_patient(
    client: Client, response_context: ResponseContext, body: str
) -> None:
    response_context.response = client.create_patient(json.loads(body))


@when(parsers.parse('I send a {method} request to "{path}" with body \'{body}\''))
def send_request_with_body(
    client: Client,
    response_context: ResponseContext,
    method: str,
    path: str,
    body: str,
) -> None:
    response_context.response = client.send_raw(method, path, body.encode("utf-8"))


@when(parsers.parse('I send a {method} request to "{path}"'))
def send_request(
    client: Client, response_context: ResponseContext, method: str, path: str
) -> None:
    response_context.response = client.send_raw(method, path)


@then(
    parsers.cfparse(
        "the response status code should be {expected_status:d}",
        extra_types={"expected_status": int},
    )
)
def check_status_code(response_context: ResponseContext, expected_status: int) -> None:
    assert response_context.response is not None, "Response has not been set."
    assert response_context.response.status_code == expected_status, (
        f"Expected status {expected_status}, "
        f"got {response_context.response.status_code}"
    )


@then(parsers.parse('the response header "{name}" should be "{value}"'))
def check_header(response_context: ResponseContext, name: str, value: str) -> None:
    assert response_context.response is not None, "Response has not been set."
    assert response_context.response.headers.get(name) == value


@then(parsers.parse("the response body should have identifier {identifier:d}"))
def check_identifier(response_context: ResponseContext, identifier: int) -> None:
    assert response_context.response is not None, "Response has not been set."
    assert response_context.response.json()["identifier"] == identifier


@then("the response body should be empty")
def check_empty_body(response_context: ResponseContext) -> None:
    assert response_context.response is not None, "Response has not been set."
    assert response_context.response.content == b""


@then(parsers.parse('the response error should be "{message}"'))
def check_error(response_context: ResponseContext, message: str) -> None:
    assert response_context.response is not None, "Response has not been set."
    assert response_context.response.json() == {"error": message}


@then(parsers.parse('patient {patient_id:d} should still have gender "{gender}"'))
def check_stored_gender(client: Client, patient_id: int, gender: str) -> None:
    response = client.read_patient(patient_id)
    assert response.status_code == 200
    assert response.json()["gender"] == gender
