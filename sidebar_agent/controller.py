"""执行模块：写入输入框、上传附件、点击发送、剪贴板兜底"""

from playwright.async_api import Locator, Page
from playwright.async_api import Error as PlaywrightError

from .models import SUBMIT_NOT_FOUND, AttachedFile, InjectionFailure, TargetDescriptor
from .perception import find_first

# 写入输入框的几种方式：
#   native-setter  textarea/input 走原型上的 value setter，React 等框架才能感知到变化
#   insert-text    contenteditable（如 ProseMirror）用 execCommand 插入文本，不直接改 innerHTML
#   text-content   前两种都不可用时的降级方式
# 最后统一派发 input + change 事件
SET_VALUE_JS = """
(el, value) => {
    let strategy = 'text-content';
    if (el.tagName === 'TEXTAREA' || el.tagName === 'INPUT') {
        const proto = el.tagName === 'TEXTAREA'
            ? window.HTMLTextAreaElement.prototype
            : window.HTMLInputElement.prototype;
        const setter = Object.getOwnPropertyDescriptor(proto, 'value')?.set;
        if (setter) {
            setter.call(el, value);
            strategy = 'native-setter';
        } else {
            el.value = value;
        }
    } else if (el.isContentEditable || el.getAttribute('contenteditable')) {
        el.focus();
        document.execCommand('selectAll', false, null);
        if (document.execCommand('insertText', false, value)) {
            strategy = 'insert-text';
        } else {
            el.textContent = value;
        }
    } else {
        el.textContent = value;
    }

    el.dispatchEvent(new Event('input', { bubbles: true }));
    el.dispatchEvent(new Event('change', { bubbles: true }));
    return strategy;
}
"""

CLIPBOARD_JS = "(text) => navigator.clipboard.writeText(text)"


class Controller:
    """执行模块：在侧边栏页面上执行写入、上传和提交"""

    def __init__(self, page: Page):
        self.page = page

    async def set_input_value(self, element: Locator, value: str) -> str:
        """写入文本，返回使用的写入方式"""
        strategy = await element.evaluate(SET_VALUE_JS, value)
        print(f"✓ 已写入输入框 ({strategy}, {len(value)} 字符)")
        return strategy

    async def attach_file(self, element: Locator, attached: AttachedFile) -> bool:
        """把内容作为文件放进 <input type=file>，失败返回 False"""
        try:
            await element.set_input_files(files={
                "name": attached.name,
                "mimeType": attached.mime_type,
                "buffer": attached.content.encode("utf-8"),
            })
            await element.dispatch_event("change")
            print(f"✓ 已上传附件 {attached.name}")
            return True
        except PlaywrightError as e:
            print(f"❌ 附件上传失败: {e}")
            return False

    async def click_submit(self, target: TargetDescriptor) -> str:
        """依次尝试发送按钮选择器并点击，返回命中的选择器"""
        for selector in target.submit_selectors():
            button = await find_first(self.page, [selector])
            if button is None:
                continue
            await button.click()
            print(f"✓ 点击发送按钮 {selector}")
            return selector
        raise InjectionFailure(SUBMIT_NOT_FOUND, f"{target.name}: 找不到发送按钮")

    async def copy_to_clipboard(self, text: str) -> bool:
        """尽力而为，剪贴板不可用时只打印提示"""
        try:
            await self.page.evaluate(CLIPBOARD_JS, text)
            print("✓ 已复制到剪贴板")
            return True
        except Exception as e:
            print(f"⚠ 剪贴板不可用: {e}")
            return False
