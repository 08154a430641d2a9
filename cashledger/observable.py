from typing import Callable, List


class Subject:
    """Change notifications for a store or model.

    ``subscribe`` hands back the matching unsubscribe callable so owners can
    tear their listeners down deterministically.
    """

    def __init__(self):
        self._listeners: List[Callable[[], None]] = []

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    def clear(self) -> None:
        self._listeners.clear()

    def __len__(self):
        return len(self._listeners)
