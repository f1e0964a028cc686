import random
import threading

import torch

from mc2048.grid import Direction, Grid
from mc2048.search import DirectionEstimate, SearchConfig, SearchEngine


class VectorizedGame:
    """A batch of independent 4x4 boards stepped together on one device."""

    def __init__(self, num_envs, device, generator=None):
        self.num_envs = num_envs
        self.device = device
        self.generator = generator
        self.board = torch.zeros((num_envs, 4, 4), dtype=torch.int64, device=device)

    def fill(self, rows):
        """Copy one board into every env."""
        state = torch.tensor(rows, dtype=self.board.dtype, device=self.device)
        self.board[:] = state

    def add_random_tile(self, env_indices):
        # env_indices: (K,)
        if len(env_indices) == 0:
            return

        flat_boards = self.board[env_indices].view(-1, 16)
        empty_mask = flat_boards == 0

        # full boards have nowhere to put a tile
        has_empty = empty_mask.any(dim=1)
        env_indices = env_indices[has_empty]
        flat_boards = flat_boards[has_empty]
        empty_mask = empty_mask[has_empty]
        if len(env_indices) == 0:
            return

        # uniform over the empty cells of each board
        flat_indices = torch.multinomial(
            empty_mask.float(), 1, generator=self.generator
        ).squeeze(-1)  # (K,)

        # 2 or 4, with 4 one time in ten
        vals = (
            torch.bernoulli(
                torch.full((len(env_indices),), 0.1, device=self.device),
                generator=self.generator,
            )
            * 2
            + 2
        ).to(self.board.dtype)

        update_mask = torch.nn.functional.one_hot(flat_indices, 16).bool()
        flat_boards[update_mask] = vals
        self.board[env_indices] = flat_boards.view(-1, 4, 4)

    def get_moves(self):
        """
        Returns the next state for each of the 4 actions, shape (N, 4, 4, 4),
        and the merge score each action earns, shape (N, 4).

        Actions follow Direction: 0 - Up, 1 - Right, 2 - Down, 3 - Left.
        """
        # Up: rotate 1 CCW so the top row becomes the left column, move left, rotate back
        b_up, g_up = self._move_left_batch(torch.rot90(self.board, 1, [1, 2]))
        b_up = torch.rot90(b_up, -1, [1, 2])

        b_right, g_right = self._move_left_batch(torch.rot90(self.board, 2, [1, 2]))
        b_right = torch.rot90(b_right, -2, [1, 2])

        b_down, g_down = self._move_left_batch(torch.rot90(self.board, -1, [1, 2]))
        b_down = torch.rot90(b_down, 1, [1, 2])

        b_left, g_left = self._move_left_batch(self.board)

        states = torch.stack([b_up, b_right, b_down, b_left], dim=1)
        gains = torch.stack([g_up, g_right, g_down, g_left], dim=1)
        return states, gains

    def _shift_left(self, x):
        # x: (M, 4)
        mask = x != 0
        # stable sort descending puts True (non-zeros) first, preserving order
        _, indices = torch.sort(mask.int(), dim=1, descending=True, stable=True)
        return torch.gather(x, 1, indices)

    def _move_left_batch(self, board):
        # board: (N, 4, 4)
        x = board.reshape(-1, 4)
        x = self._shift_left(x)

        gains = torch.zeros(x.shape[0], dtype=torch.int64, device=x.device)
        for i in range(3):
            # a zeroed partner blocks the merged cell from merging again
            c = (x[:, i] == x[:, i + 1]) & (x[:, i] != 0)
            x[c, i] *= 2
            x[c, i + 1] = 0
            gains += torch.where(c, x[:, i], torch.zeros_like(x[:, i]))

        x = self._shift_left(x)
        return x.view(-1, 4, 4), gains.view(-1, 4).sum(dim=1)

    def step(self, actions, all_next_states=None, all_gains=None):
        # actions: (N,)
        if all_next_states is None or all_gains is None:
            all_next_states, all_gains = self.get_moves()

        batch_indices = torch.arange(self.num_envs, device=self.device)
        next_states = all_next_states[batch_indices, actions]  # (N, 4, 4)
        gains = all_gains[batch_indices, actions]

        # an action that changes nothing is a no-op: no tile, no score
        is_valid = (
            next_states.view(self.num_envs, -1) != self.board.view(self.num_envs, -1)
        ).any(dim=1)

        self.board = next_states.clone()

        valid_indices = torch.nonzero(is_valid).squeeze(-1)
        self.add_random_tile(valid_indices)

        return self.board.clone(), gains * is_valid, is_valid

    def get_valid_actions(self, all_next_states=None):
        # Returns (N, 4) boolean tensor
        if all_next_states is None:
            all_next_states, _ = self.get_moves()
        current = self.board.unsqueeze(1)
        return (all_next_states != current).view(self.num_envs, 4, -1).any(dim=2)

    def get_done(self, valid_actions=None):
        # a board with an empty cell can always move
        flat = self.board.view(self.num_envs, -1)
        has_empty = (flat == 0).any(dim=1)
        if valid_actions is None:
            if has_empty.all():
                return torch.zeros(self.num_envs, dtype=torch.bool, device=self.device)
            valid_actions = self.get_valid_actions()
        is_stuck = ~valid_actions.any(dim=1)
        return is_stuck & (~has_empty)


class VectorizedSearchEngine(SearchEngine):
    """
    Same estimator as SearchEngine, but all rollouts of a direction run as
    one batch of boards. Rollouts never share state; the per-direction average
    is a plain tensor reduction.
    """

    def __init__(
        self,
        config: SearchConfig | None = None,
        device: torch.device | None = None,
        seed: int | None = None,
    ):
        # evaluate draws from the torch generator only; rng feeds the inherited
        # sequential rollout, seeded alike so both paths replay from `seed`
        super().__init__(config, rng=random.Random(seed))
        self.device = device or torch.device("cpu")
        self.generator = torch.Generator(device=self.device)
        if seed is not None:
            self.generator.manual_seed(seed)
        else:
            self.generator.seed()

    def evaluate(
        self,
        grid: Grid,
        direction: Direction,
        cancel: threading.Event | None = None,
    ) -> DirectionEstimate | None:
        direction = Direction.parse(direction)
        if grid.size != 4:
            raise ValueError("VectorizedSearchEngine only handles 4x4 boards")
        if cancel is not None and cancel.is_set():
            return None
        # first-move legality is deterministic, so one check stands for every rollout
        if not grid.move_available(direction):
            return None

        n = self.config.rollouts_per_direction
        limit = self.config.max_rollout_moves
        vec = VectorizedGame(n, self.device, self.generator)
        vec.fill(grid.to_rows())

        first = torch.full((n,), int(direction), dtype=torch.long, device=self.device)
        _, scores, valid = vec.step(first)
        moves = valid.long()
        active = torch.ones(n, dtype=torch.bool, device=self.device)

        while True:
            all_next_states, all_gains = vec.get_moves()
            valid_actions = vec.get_valid_actions(all_next_states)
            active &= ~vec.get_done(valid_actions)
            if limit is not None:
                active &= moves < limit
            if not active.any():
                break
            if cancel is not None and cancel.is_set():
                break

            actions = torch.randint(
                0, 4, (n,), generator=self.generator, device=self.device
            )
            _, gains, valid = vec.step(actions, all_next_states, all_gains)
            scores += gains * active
            moves += (valid & active).long()

        return DirectionEstimate(
            direction=direction,
            score=scores.double().mean().item(),
            moves=moves.double().mean().item(),
            rollouts=n,
        )

