# ---
# jupyter:
#   jupytext:
#     formats: ipynb,py:percent
#     text_representation:
#       extension: .py
#       format_name: percent
#       format_version: '1.3'
#       jupytext_version: 1.18.1
#   kernelspec:
#     display_name: Python 3
#     language: python
#     name: python3
# ---

# %% [markdown]
# # Place Cells Along a Trajectory
#
# This notebook walks through a complete place cell simulation with `spatialcells`.
#
# **Estimated time**: 10 minutes
#
# ## Learning Objectives
#
# By the end of this notebook, you will be able to:
#
# - Create an environment and an agent that replays a trajectory
# - Build place cell populations with different response shapes
# - Drive populations with `run_session()` and read their history
# - Plot rate maps and firing rate time series
# - Keep run settings in a JSON configuration file
#
# **Contents:**
#
# 1. [Environment and Agent](#1-Environment-and-Agent)
# 2. [Place Cells](#2-Place-Cells)
# 3. [Running a Session](#3-Running-a-Session)
# 4. [Configuration Files](#4-Configuration-Files)

# %%
import tempfile
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

from spatialcells import configure_logging
from spatialcells.config import SimulationConfig, load_config, save_config
from spatialcells.environment import Environment
from spatialcells.simulation import Agent, PlaceCells, run_session
from spatialcells.visualization import (
    plot_environment,
    plot_rate_map,
    plot_rate_timeseries,
)

configure_logging("INFO")

# %% [markdown]
# ## 1. Environment and Agent
#
# An `Environment` is a rectangular arena in meters. Rates are evaluated on a
# grid with spacing `dx`.
#
# The `Agent` replays a trajectory sample by sample. Here we simulate 60
# seconds of exploration with an Ornstein-Uhlenbeck process. Recorded data can
# be loaded with `Agent.from_csv()` instead.

# %%
env = Environment(extent=(0, 1.0, 0, 1.0), dx=0.02)
agent = Agent.simulate(env, duration=60.0, dt=0.02, speed_mean=0.12, seed=0)

fig, ax = plot_environment(env)
ax.plot(agent.positions[:, 0], agent.positions[:, 1], linewidth=0.5, alpha=0.7)
ax.set_title(f"{agent.n_samples} samples, mean speed {agent.speed_mean:.2f} m/s")
plt.show()

# %% [markdown]
# ## 2. Place Cells
#
# `PlaceCells` places one field per neuron. Centres default to a jittered grid
# covering the arena and `description` selects the response shape.

# %%
pcs = PlaceCells(agent, n=10, widths=0.15, max_fr=15.0, noise_std=0.5, seed=1)
print(pcs)
print("Centres:\n", np.round(pcs.place_cell_centres, 2))

fig, axes = plot_rate_map(pcs)
plt.show()

# %% [markdown]
# The same centres with a different response shape:

# %%
for description in ("gaussian_threshold", "diff_of_gaussians", "top_hat"):
    variant = PlaceCells(
        agent,
        place_cell_centres=pcs.place_cell_centres[:3],
        description=description,
        widths=0.15,
        max_fr=15.0,
        name=description,
    )
    plot_rate_map(variant)
plt.show()

# %% [markdown]
# ## 3. Running a Session
#
# `run_session()` updates each population at every trajectory sample. Each
# update adds the rate and a spike draw to the population's history.

# %%
session = run_session(agent, pcs, show_progress=True)
history = pcs.get_history_arrays()

print(f"Steps: {session.n_steps}")
print(f"Rates: {history['firingrate'].shape}")
print(f"Spikes per neuron: {history['spikes'].sum(axis=0)}")

fig, ax = plot_rate_timeseries(pcs, chosen_neurons=5, t_end=30.0)
plt.show()

# %% [markdown]
# ## 4. Configuration Files
#
# A `SimulationConfig` holds the defaults for a whole run. Options in the
# `"neurons"` section apply to every population type.

# %%
config = SimulationConfig.from_dict(
    {
        "environment": {"extent": [0, 1.5, 0, 1.0], "dx": 0.02},
        "neurons": {"max_fr": 15.0},
        "place": {"n": 12, "description": "gaussian_threshold"},
    }
)
path = save_config(config, Path(tempfile.mkdtemp()) / "place_cells.json")
print(path.read_text()[:300])

config = load_config(path)
env = config.environment.create()
agent = config.agent.create(env, duration=30.0, seed=0)
pcs = PlaceCells(agent, config=config.place, seed=0)
run_session(agent, pcs)
plot_rate_map(pcs, plot_config=config.plot)
plt.show()
