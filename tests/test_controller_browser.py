"""在真实的无头 Chromium 页面上运行 SET_VALUE_JS；没有安装浏览器时跳过"""

import asyncio

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from sidebar_agent.controller import Controller
from sidebar_agent.perception import find_first, is_login_page, wait_for_element

# #tracked 模拟 React 在实例上挂的 value 属性：直接 el.value = ... 会被它截获
PAGE = """
<textarea id="plain"></textarea>
<textarea id="tracked"></textarea>
<div id="editor" contenteditable="true"></div>
<span id="label"></span>
<script>
  window.events = [];
  for (const el of document.querySelectorAll('textarea, div, span')) {
    el.addEventListener('input', () => window.events.push(el.id + ':input'));
    el.addEventListener('change', () => window.events.push(el.id + ':change'));
  }
  const tracked = document.getElementById('tracked');
  const native = Object.getOwnPropertyDescriptor(HTMLTextAreaElement.prototype, 'value');
  window.instanceWrites = [];
  Object.defineProperty(tracked, 'value', {
    configurable: true,
    get() { return native.get.call(this); },
    set(v) { window.instanceWrites.push(v); native.set.call(this, v); },
  });
</script>
"""


def _in_page(scenario):
    async def main():
        async with async_playwright() as playwright:
            try:
                browser = await playwright.chromium.launch()
            except PlaywrightError as e:
                return None, str(e)
            try:
                page = await browser.new_page()
                await page.set_content(PAGE)
                return await scenario(page), None
            finally:
                await browser.close()

    result, launch_error = asyncio.run(main())
    if launch_error is not None:
        pytest.skip(f"chromium 不可用: {launch_error.splitlines()[0]}")
    return result


async def _write(page, selector: str, value: str):
    element = await wait_for_element(page, selector, 2000)
    strategy = await Controller(page).set_input_value(element, value)
    events = await page.evaluate(f"window.events.filter(e => e.startsWith('{selector[1:]}:'))")
    return strategy, events


def test_textarea_uses_native_setter_and_fires_events() -> None:
    async def scenario(page):
        strategy, events = await _write(page, "#plain", "Summarize: https://example.com")
        return strategy, events, await page.input_value("#plain")

    strategy, events, value = _in_page(scenario)
    assert strategy == "native-setter"
    assert value == "Summarize: https://example.com"
    assert events == ["plain:input", "plain:change"]


def test_native_setter_bypasses_instance_value_property() -> None:
    async def scenario(page):
        strategy, _ = await _write(page, "#tracked", "hello")
        return strategy, await page.input_value("#tracked"), await page.evaluate("window.instanceWrites")

    strategy, value, instance_writes = _in_page(scenario)
    assert strategy == "native-setter"
    assert value == "hello"
    assert instance_writes == []


def test_contenteditable_uses_insert_text() -> None:
    async def scenario(page):
        await page.evaluate("document.getElementById('editor').textContent = 'old draft'")
        strategy, events = await _write(page, "#editor", "hello editor")
        return strategy, events, await page.text_content("#editor")

    strategy, events, text = _in_page(scenario)
    assert strategy == "insert-text"
    assert text == "hello editor"
    # execCommand 自己也会触发一次 input
    assert events[-2:] == ["editor:input", "editor:change"]


def test_plain_element_degrades_to_text_content() -> None:
    async def scenario(page):
        strategy, events = await _write(page, "#label", "fallback")
        return strategy, events, await page.text_content("#label")

    strategy, events, text = _in_page(scenario)
    assert strategy == "text-content"
    assert text == "fallback"
    assert events == ["label:input", "label:change"]


def test_locator_helpers_on_real_page() -> None:
    async def scenario(page):
        found = await find_first(page, ["", "[[not a selector", "#missing", "#editor"])
        missing = await wait_for_element(page, "#missing", 200)
        return await found.get_attribute("id"), missing, await is_login_page(page)

    found_id, missing, login = _in_page(scenario)
    assert found_id == "editor"
    assert missing is None
    assert login is False
