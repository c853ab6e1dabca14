"""通知模块：给用户的一次性提示"""

from typing import List

APP_TITLE = "AI Summarizer"


class Notifier:
    def __init__(self, title: str = APP_TITLE):
        self.title = title
        self.history: List[str] = []

    def notify(self, message: str) -> None:
        self.history.append(message)
        print(f"🔔 [{self.title}] {message}")

    @property
    def last(self) -> str:
        return self.history[-1] if self.history else ""
