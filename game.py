from mc2048.autoplay import AutoPlayer
from mc2048.game import Command, GameEngine
from mc2048.grid import Grid

key_mapping = {
    "w": Command.UP,
    "d": Command.RIGHT,
    "s": Command.DOWN,
    "a": Command.LEFT,
    "r": Command.RESTART,
    "n": Command.STEP_ADVISED_MOVE,
    "g": Command.RUN_AUTO_PLAY,
    "p": Command.PAUSE_AUTO_PLAY,
}


def display(engine: GameEngine):
    print(Grid.from_rows(engine.snapshot().to_rows()))
    added = f" (+{engine.last_score})" if engine.last_score > 0 else ""
    print(f"Score: {engine.score}{added}")
    if engine.died:
        print("Game over, press r to restart")


def handle_key(key: str, engine: GameEngine, player: AutoPlayer) -> bool:
    """Apply one key press. Returns False when the key quits."""
    command = key_mapping.get(key.strip().lower())
    if command is None:
        player.stop()
        return False
    if command is Command.RUN_AUTO_PLAY:
        # plays in the background until p, another key, or the end of the game
        player.start()
        return True
    # the auto-play thread must be the only writer while it runs
    player.stop()
    if command is not Command.PAUSE_AUTO_PLAY:
        engine.dispatch(command)
    return True


if __name__ == "__main__":
    game = GameEngine(verbose=True)
    player = AutoPlayer(game)

    display(game)

    while handle_key(input(), game, player):
        display(game)
