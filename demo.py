import random
import time

import numpy as np
import pandas as pd
import streamlit as st

from mc2048.game import GameEngine, Snapshot
from mc2048.search import SearchConfig, SearchEngine


TILE_COLORS = {
    0: "#CDC1B4",
    2: "#EEE4DA",
    4: "#EDE0C8",
    8: "#F2B179",
    16: "#F59563",
    32: "#F67C5F",
    64: "#F65E3B",
    128: "#EDCF72",
    256: "#EDCC61",
    512: "#EDC850",
    1024: "#EDC53F",
    2048: "#EDC22E",
}
BIG_TILE_COLOR = "#3C3A32"

BOARD_CSS = """
<style>
.board { background-color: #BBADA0; border-radius: 6px; padding: 10px; width: fit-content; }
.cell {
    width: 80px; height: 80px; margin: 4px; border-radius: 3px;
    display: flex; justify-content: center; align-items: center;
    font-family: 'Arial', sans-serif; font-weight: bold; font-size: 24px;
    color: #776E65;
}
.cell-light { color: #F9F6F2; }
.cell-new { outline: 3px solid #8F7A66; }
</style>
"""


@st.cache_data
def play_game(rollouts: int, seed: int) -> list[Snapshot]:
    rng = random.Random(seed)
    search = SearchEngine(SearchConfig(rollouts_per_direction=rollouts), rng=random.Random(seed + 1))
    engine = GameEngine(search=search, rng=rng)
    snapshots = [engine.snapshot()]
    while not engine.died:
        if engine.step_advised_move() is None:
            break
        snapshots.append(engine.snapshot())
    return snapshots


def display_board(snapshot: Snapshot):
    board = np.array(snapshot.to_rows())
    new_cells = {(t.row, t.col) for t in snapshot.tiles if t.is_new}

    st.markdown(BOARD_CSS, unsafe_allow_html=True)
    s = '<div class="board">'
    for i in range(snapshot.size):
        s += '<div style="display: flex;">'
        for j in range(snapshot.size):
            value = int(board[i][j])
            classes = ["cell"]
            if value >= 8:
                classes.append("cell-light")
            if (i, j) in new_cells:
                classes.append("cell-new")
            color = TILE_COLORS.get(value, BIG_TILE_COLOR)
            text = str(value) if value else ""
            s += f'<div class="{" ".join(classes)}" style="background-color: {color};">{text}</div>'
        s += "</div>"
    s += "</div>"
    st.markdown(s, unsafe_allow_html=True)

    st.markdown("---")
    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Score", snapshot.score)
    with col2:
        st.metric("Highest Tile", int(board.max()))
    with col3:
        st.metric("Move", st.session_state.index)
    if snapshot.died:
        st.warning("Game over")


if __name__ == "__main__":
    st.title("2048 Monte-Carlo Advisor")

    rollouts = st.sidebar.slider("Rollouts per direction", 10, 200, 50, step=10)
    if st.button("New game") or "seed" not in st.session_state:
        st.session_state.seed = random.randrange(1 << 30)
        st.session_state.index = 0

    states = play_game(rollouts, st.session_state.seed)
    st.session_state.index = min(st.session_state.index, len(states) - 1)

    cols = st.columns(4)
    with cols[0]:
        if st.button("Start"):
            st.session_state.index = 0
    with cols[1]:
        if st.button("Previous"):
            st.session_state.index = max(0, st.session_state.index - 1)
    with cols[2]:
        if st.button("Next"):
            st.session_state.index = min(len(states) - 1, st.session_state.index + 1)
    with cols[3]:
        if st.button("End"):
            st.session_state.index = len(states) - 1
    if st.button("Auto play"):
        st.session_state.auto_play = True
    if st.button("Pause"):
        st.session_state.auto_play = False

    display_board(states[st.session_state.index])

    history = pd.DataFrame({"score": [s.score for s in states[: st.session_state.index + 1]]})
    st.line_chart(history)

    if st.session_state.get("auto_play"):
        if st.session_state.index == len(states) - 1:
            st.session_state.auto_play = False
        else:
            st.session_state.index += 1
            time.sleep(0.05)
            st.rerun()
