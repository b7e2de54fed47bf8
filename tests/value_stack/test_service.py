import asyncio
from dataclasses import replace

import pytest

from formpilot.value_stack import service_handlers
from formpilot.value_stack.config import ValueStackConfig
from formpilot.value_stack.models import SetResult
from formpilot.value_stack.service import ValueRpcService

from fakes import (
    FakeDocument,
    FakeElementHandle,
    FakeKeyboard,
    FakeProvider,
    RecordingSleep,
    element,
)


def _service(document, config=None, executor=None):
    return ValueRpcService(
        FakeProvider(document),
        config=config or ValueStackConfig.immediate(),
        executor=executor,
        sleep=RecordingSleep(),
    )


def _form():
    handles = {
        0: FakeElementHandle(value=""),
        1: FakeElementHandle(kind="select", options=[("us", "United States"), ("ca", "Canada")]),
        2: FakeElementHandle(checked=False),
        3: FakeElementHandle(kind="button"),
    }
    elements = [
        element(0, "input", placeholder="Email address", name="email", type="email"),
        element(1, "select", name="country"),
        element(2, "input", type="checkbox", name="terms"),
        element(3, "button", text="Send"),
    ]
    keyboard = FakeKeyboard(target=handles[0])
    return FakeDocument(elements, handles, keyboard=keyboard), handles


class TimeoutMessageHandle(FakeElementHandle):
    async def evaluate(self, expression, arg=None):
        raise RuntimeError("Timeout 3000ms exceeded while waiting for element")


@pytest.mark.asyncio
async def test_set_value_by_description_success_payload():
    document, handles = _form()
    service = _service(document)

    response = await service.handle(
        {"id": 7, "method": "set_value", "params": {"target": "email address", "value": "a@b.c"}}
    )

    assert response["id"] == 7
    result = response["result"]
    assert result["success"] is True
    assert result["message"] == 'Successfully set text-input to "a@b.c" using type method'
    assert result["target"] == "email address"
    assert result["target_type"] == "description"
    assert result["element_index"] == 0
    assert result["element_type"] == "text-input"
    assert result["input_method"] == "type"
    assert result["actual_value"] == "a@b.c"
    assert result["element_info"] == {
        "tag_name": "input",
        "text": "",
        "placeholder": "Email address",
        "name": "email",
        "id": "",
        "type": "email",
    }
    assert result["options_used"] == {"clear_first": True, "submit": False, "wait_after": 1.0}
    assert result["timeout_ms"] == 12000
    assert result["rpc_budget_ms"] == 27000
    assert result["settle_ms"] == 500
    assert result["submitted"] is False
    assert handles[0].value == "a@b.c"


@pytest.mark.asyncio
async def test_set_value_select_and_checkbox_by_index():
    document, handles = _form()
    service = _service(document)

    select = await service.handle({"method": "set_value", "params": {"target": 1, "value": "Canada"}})
    toggle = await service.handle(
        {"method": "set_value", "params": {"target": "2", "target_type": "index", "value": "true"}}
    )

    assert select["result"]["actual_value"] == "Canada"
    assert select["result"]["settle_ms"] == 1500
    assert "id" not in select
    assert toggle["result"]["actual_value"] is True
    assert toggle["result"]["target_type"] == "index"
    assert handles[2].checked is True


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "params, message",
    [
        ({"value": "x"}, "Missing required parameter: target"),
        ({"target": 0}, "Missing required parameter: value"),
        ({"target": 0, "value": None}, "Missing required parameter: value"),
        (
            {"target": 0, "value": "x", "options": {"wait_after": 31}},
            "options.wait_after must be a number between 0 and 30 seconds",
        ),
        (
            {"target": 0, "value": "x", "options": {"wait_after": "1"}},
            "options.wait_after must be a number between 0 and 30 seconds",
        ),
        (
            {"target": 0, "value": "x", "options": {"wait_after": float("nan")}},
            "options.wait_after must be a number between 0 and 30 seconds",
        ),
        (
            {"target": 0, "value": "x", "options": {"wait_after": float("inf")}},
            "options.wait_after must be a number between 0 and 30 seconds",
        ),
        ({"target": 0, "value": "x", "timeout": "soon"}, "timeout must be 'auto' or a timeout in milliseconds"),
        ({"target": 0, "value": "x", "timeout": "inf"}, "timeout must be 'auto' or a timeout in milliseconds"),
        ({"target": 0, "value": "x", "timeout": "1e400"}, "timeout must be 'auto' or a timeout in milliseconds"),
        ({"target": -1, "value": "x"}, "target must be a non-negative number"),
        ({"target": 1.5, "value": "x"}, "target must be a non-negative number"),
        ({"target": 0, "value": "x", "target_type": "xpath"}, "target_type must be 'index' or 'description'"),
    ],
)
async def test_set_value_rejects_invalid_params(params, message):
    document, handles = _form()
    service = _service(document)

    response = await service.handle({"method": "set_value", "params": params})

    assert response["error"]["code"] == -32602
    assert response["error"]["message"] == message
    assert handles[0].typed == []


@pytest.mark.asyncio
async def test_option_type_errors_name_the_field():
    document, _ = _form()
    service = _service(document)

    unknown = await service.handle(
        {"method": "set_value", "params": {"target": 0, "value": "x", "options": {"bogus": 1}}}
    )
    not_bool = await service.handle(
        {"method": "set_value", "params": {"target": 0, "value": "x", "options": {"submit": "yes"}}}
    )

    assert unknown["error"]["code"] == -32602
    assert unknown["error"]["message"].startswith("options.bogus: ")
    assert not_bool["error"]["code"] == -32602
    assert not_bool["error"]["message"].startswith("options.submit: ")


@pytest.mark.asyncio
async def test_no_active_page():
    service = _service(None)

    response = await service.handle({"method": "set_value", "params": {"target": 0, "value": "x"}})

    assert response["error"] == {"code": -32000, "message": "No active page available"}


@pytest.mark.asyncio
async def test_unknown_target_is_enriched_with_inventory_size():
    document, _ = _form()
    service = _service(document)

    response = await service.handle({"method": "set_value", "params": {"target": 99, "value": "x"}})

    error = response["error"]
    assert error["code"] == -32000
    assert error["message"] == (
        "Element with index 99 not found in DOM state. Page has 4 interactive elements. "
        "Use get_dom_extra_elements tool to see available elements."
    )
    assert error["data"] == {
        "error_code": "ELEMENT_NOT_FOUND",
        "target": 99,
        "target_type": "index",
        "available_element_count": 4,
        "suggested_action": "Use get_dom_extra_elements tool to list available elements",
    }


@pytest.mark.asyncio
async def test_unsupported_element_type():
    document, _ = _form()
    service = _service(document)

    response = await service.handle({"method": "set_value", "params": {"target": 3, "value": "x"}})

    error = response["error"]
    assert error["code"] == -32000
    assert error["message"] == "Cannot handle element type: button"
    assert error["data"]["error_code"] == "UNSUPPORTED_ELEMENT_TYPE"
    assert error["data"]["element_tag"] == "button"
    assert error["data"]["supported_types"] == ["input", "select", "textarea", "contenteditable"]
    assert len(error["data"]["suggested_actions"]) == 3


@pytest.mark.asyncio
async def test_execution_errors_carry_typed_kind():
    document, handles = _form()
    handles[0].visible = False
    service = _service(document)

    response = await service.handle({"method": "set_value", "params": {"target": 0, "value": "x"}})

    error = response["error"]
    assert error["code"] == -32603
    assert error["message"] == "Element is not visible or interactive"
    assert error["data"] == {
        "error_code": "ELEMENT_NOT_VISIBLE",
        "exception_type": "ElementNotVisibleError",
    }


@pytest.mark.asyncio
async def test_untyped_errors_fall_back_to_message_classification():
    document = FakeDocument([element(0, "input")], {0: TimeoutMessageHandle()})
    service = _service(document, config=replace(ValueStackConfig.immediate(), include_stack=True))

    response = await service.handle({"method": "type_value", "params": {"element_index": 0, "value": "x"}})

    data = response["error"]["data"]
    assert response["error"]["code"] == -32603
    assert data["error_code"] == "OPERATION_TIMEOUT"
    assert data["exception_type"] == "RuntimeError"
    assert "Traceback" in data["stack"]


@pytest.mark.asyncio
async def test_option_not_found_maps_to_element_not_found():
    document, _ = _form()
    service = _service(document)

    response = await service.handle({"method": "set_value", "params": {"target": 1, "value": "Mars"}})

    assert response["error"]["code"] == -32603
    assert response["error"]["data"]["error_code"] == "ELEMENT_NOT_FOUND"
    assert response["error"]["message"].startswith('Option "Mars" not found.')


@pytest.mark.asyncio
async def test_type_value_auto_detects_keyboard_mode():
    document, handles = _form()
    service = _service(document)

    response = await service.handle(
        {
            "method": "type_value",
            "params": {"element_index": 0, "value": "hi{Enter}", "options": {"submit": True}},
        }
    )

    result = response["result"]
    assert result["message"] == "Successfully executed keyboard input on element"
    assert result["element_index"] == 0
    assert result["element_type"] == "input"
    assert result["input_method"] == "keyboard"
    assert result["operations_performed"] == [
        {"type": "text", "content": "hi"},
        {"type": "specialKey", "key": "Enter"},
    ]
    assert result["actual_value"] == "hi"
    assert result["settle_ms"] == 1200
    assert result["timeout_ms"] == 21600
    assert result["submitted"] is True
    assert document.keyboard.calls[-1] == ("press", "Enter")
    assert "target" not in result


@pytest.mark.asyncio
async def test_type_value_explicit_mode_wins():
    document, handles = _form()
    service = _service(document)

    response = await service.handle(
        {"method": "type_value", "params": {"element_index": 0, "value": "{literal}", "keyboard_mode": False}}
    )

    assert response["result"]["input_method"] == "type"
    assert handles[0].value == "{literal}"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "params, message",
    [
        ({"value": "x"}, "Missing required parameter: element_index"),
        ({"element_index": -1, "value": "x"}, "element_index must be a non-negative number"),
        ({"element_index": "3", "value": "x"}, "element_index must be a non-negative number"),
        ({"element_index": True, "value": "x"}, "element_index must be a non-negative number"),
        ({"element_index": 0}, "Missing required parameter: value"),
        (
            {"element_index": 0, "value": "x", "keyboard_mode": "maybe"},
            "keyboard_mode must be a boolean",
        ),
    ],
)
async def test_type_value_rejects_invalid_params(params, message):
    document, _ = _form()
    service = _service(document)

    response = await service.handle({"method": "type_value", "params": params})

    assert response["error"] == {"code": -32602, "message": message}


@pytest.mark.asyncio
async def test_type_value_not_found_echoes_element_index():
    document, _ = _form()
    service = _service(document)

    response = await service.handle({"method": "type_value", "params": {"element_index": 12, "value": "x"}})

    data = response["error"]["data"]
    assert data["element_index"] == 12
    assert "target" not in data
    assert data["available_element_count"] == 4


@pytest.mark.asyncio
async def test_request_shape_errors():
    service = _service(FakeDocument())

    assert (await service.handle(["set_value"]))["error"]["code"] == -32600
    assert (await service.handle({"params": {}}))["error"]["code"] == -32600

    missing = await service.handle({"id": "a", "method": "fill_form"})
    assert missing["id"] == "a"
    assert missing["error"]["code"] == -32601
    assert missing["error"]["data"] == {"supported_methods": ["set_value", "type_value"]}

    bad_params = await service.handle({"method": "set_value", "params": [1, "x"]})
    assert bad_params["error"]["code"] == -32602


@pytest.mark.asyncio
async def test_registered_methods_are_dispatched():
    service = _service(FakeDocument())

    async def ping(params):
        return {"pong": params.get("n")}

    service.register_method("ping", ping)
    response = await service.handle({"method": "ping", "params": {"n": 3}})

    assert response == {"result": {"pong": 3}}
    assert "ping" in service.methods


class _RecordingExecutor:
    def __init__(self, *, hang: bool = False):
        self.hang = hang
        self.events = []

    async def execute(self, document, element, value, strategy, options, *, settle_ms=0):
        self.events.append(("start", value))
        if self.hang:
            await asyncio.Event().wait()
        await asyncio.sleep(0.01)
        self.events.append(("end", value))
        return SetResult(actual_value=value)


@pytest.mark.asyncio
async def test_requests_are_serialized_per_service():
    document, _ = _form()
    executor = _RecordingExecutor()
    service = _service(document, executor=executor)

    await asyncio.gather(
        service.handle({"method": "set_value", "params": {"target": 0, "value": "a"}}),
        service.handle({"method": "set_value", "params": {"target": 0, "value": "b"}}),
    )

    assert executor.events == [("start", "a"), ("end", "a"), ("start", "b"), ("end", "b")]


@pytest.mark.asyncio
async def test_serialization_can_be_disabled():
    document, _ = _form()
    executor = _RecordingExecutor()
    config = replace(ValueStackConfig.immediate(), serialize_requests=False)
    service = _service(document, config=config, executor=executor)

    await asyncio.gather(
        service.handle({"method": "set_value", "params": {"target": 0, "value": "a"}}),
        service.handle({"method": "set_value", "params": {"target": 0, "value": "b"}}),
    )

    assert [kind for kind, _ in executor.events] == ["start", "start", "end", "end"]


@pytest.mark.asyncio
async def test_enforced_timeout_reports_operation_timeout(monkeypatch):
    document, _ = _form()
    monkeypatch.setattr(service_handlers, "calculate_operation_timeout", lambda *args: 10)
    config = replace(ValueStackConfig.immediate(), enforce_timeout=True)
    service = _service(document, config=config, executor=_RecordingExecutor(hang=True))

    response = await service.handle({"method": "set_value", "params": {"target": 0, "value": "x"}})

    assert response["error"]["code"] == -32603
    assert response["error"]["message"] == "Operation timeout after 10 ms"
    assert response["error"]["data"]["error_code"] == "OPERATION_TIMEOUT"


def _text_input_document(index):
    handles = {index: FakeElementHandle(value="")}
    elements = [element(i, "button", text=f"Action {i}") for i in range(index)]
    elements.append(element(index, "input", type="text", name="first_name"))
    return FakeDocument(elements, handles, keyboard=FakeKeyboard(target=handles[index])), handles


@pytest.mark.asyncio
async def test_type_value_mixed_text_and_tab_end_to_end():
    document, handles = _text_input_document(1)
    service = _service(document)

    response = await service.handle(
        {"method": "type_value", "params": {"element_index": 1, "value": "hi {Tab}there"}}
    )

    result = response["result"]
    assert result["input_method"] == "keyboard"
    assert result["operations_performed"] == [
        {"type": "text", "content": "hi "},
        {"type": "specialKey", "key": "Tab"},
        {"type": "text", "content": "there"},
    ]
    assert document.keyboard.calls == [("type", "hi "), ("press", "Tab"), ("type", "there")]


@pytest.mark.asyncio
async def test_set_value_types_into_empty_text_input_by_index():
    document, handles = _text_input_document(3)
    service = _service(document)

    response = await service.handle({"method": "set_value", "params": {"target": 3, "value": "Alice"}})

    result = response["result"]
    assert result["success"] is True
    assert result["element_index"] == 3
    assert result["element_type"] == "text-input"
    assert result["input_method"] == "type"
    assert result["actual_value"] == "Alice"
    assert handles[3].value == "Alice"


@pytest.mark.asyncio
async def test_file_input_is_unsupported():
    handles = {0: FakeElementHandle(value="")}
    document = FakeDocument([element(0, "input", type="file", name="resume")], handles)
    service = _service(document)

    response = await service.handle({"method": "set_value", "params": {"target": 0, "value": "cv.pdf"}})

    error = response["error"]
    assert error["code"] == -32000
    assert error["message"] == "Cannot handle element type: file"
    assert error["data"]["error_code"] == "UNSUPPORTED_ELEMENT_TYPE"
    assert error["data"]["element_type"] == "file"
    assert error["data"]["element_tag"] == "input"
    assert handles[0].typed == []
