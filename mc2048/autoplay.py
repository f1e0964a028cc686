import threading

from mc2048.game import GameEngine, MoveOutcome


class AutoPlayer:
    """
    Drives a GameEngine with advised moves until the game dies or play is
    paused. `engine.running` is the pause flag; it is checked between moves.
    While the loop runs it is the only writer of the engine, front ends
    should only read snapshots.
    """

    def __init__(self, engine: GameEngine, interval: float = 0.05):
        self.engine = engine
        self.interval = interval
        self._cancel = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def step(self) -> MoveOutcome | None:
        if not self.engine.running or self.engine.died:
            return None
        return self.engine.step_advised_move(self._cancel)

    def _arm(self):
        self._cancel.clear()
        self.engine.running = True

    def _loop(self, max_moves: int | None) -> int:
        # only reads the flags, so a stop() issued before the loop starts holds
        played = 0
        try:
            while max_moves is None or played < max_moves:
                outcome = self.step()
                if outcome is None:
                    break
                if outcome.moved:
                    played += 1
                if outcome.died:
                    break
                if self._cancel.wait(self.interval):
                    break
        finally:
            self.engine.running = False
        return played

    def run(self, max_moves: int | None = None) -> int:
        """Blocking loop. Returns how many moves were played."""
        self._arm()
        return self._loop(max_moves)

    def start(self, max_moves: int | None = None):
        if self.alive:
            return
        self._arm()
        self._thread = threading.Thread(
            target=self._loop, args=(max_moves,), daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float | None = None):
        self.engine.running = False
        self._cancel.set()
        if self._thread is not None:
            self._thread.join(timeout)
            if not self._thread.is_alive():
                self._thread = None

    def join(self, timeout: float | None = None):
        if self._thread is not None:
            self._thread.join(timeout)
