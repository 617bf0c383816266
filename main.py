# main.py
"""
Main entry point for the galaxy generator.

This script orchestrates the entire generation lifecycle:
1. Loads configuration from `config.json`.
2. Initializes the logging system.
3. Builds the galaxy (preset or explicit) and generates its particles.
4. Runs the animation loop, re-evaluating time-varying distributors.
5. Exports the particle arrays and handles clean shutdown.
"""
import logging
from utils import setup_logging, load_config, load_pixel_buffer, save_particle_arrays
import numpy as np
import cProfile
import pstats
import io

from constants import DEFAULT_OUTPUT_FILE


def main():
    """
    The main function to generate and animate a galaxy.
    """
    # Load configuration from the JSON file first.
    # Logging is not set up yet, so we use a print for this one error.
    try:
        config = load_config('config.json')
    except Exception as e:
        print(f"FATAL: Could not load config.json. Error: {e}")
        return

    setup_logging(config)

    logging.info("--- Galaxy Generator Starting ---")

    run_params = config.get('run_control', {})

    from presets import build_galaxy, resolve_galaxy_params
    from simulation import GalaxySimulation

    galaxy_params = resolve_galaxy_params(config.get('galaxy', {'preset': 'spiral-galaxy'}))
    galaxy = build_galaxy(galaxy_params, image_loader=load_pixel_buffer)

    animation_speed = run_params.get('animation_speed', galaxy_params.get('animation_speed', 1.0))
    sim = GalaxySimulation(
        galaxy,
        animation_speed=animation_speed,
        auto_generate=False,
        recompute_attributes=run_params.get('recompute_attributes', False),
        derived_streams=run_params.get('derived_streams', False),
    )

    profiler = cProfile.Profile()

    log_throttle = run_params.get('log_throttle_steps', 100)
    max_steps = run_params.get('max_steps', 1000)
    delta_time = run_params.get('delta_time', 1.0 / 60.0)
    workers = run_params.get('workers', 1)

    profiler.enable()
    sim.generate(workers=workers)

    for step_num in range(1, max_steps + 1):
        sim.update(delta_time)

        # Hot loops must throttle logs
        if step_num % log_throttle == 0:
            logging.info(f"Animation step {step_num}/{max_steps} (t={sim.time:.3f})")
            if logging.getLogger().isEnabledFor(logging.DEBUG):
                for name, arrays in sim.arrays().items():
                    if len(arrays['position']) == 0:
                        continue
                    mean_radius = np.mean(np.linalg.norm(arrays['position'][:, [0, 2]], axis=1))
                    logging.debug(f"Step {step_num} | Set '{name}' | Mean radius: {mean_radius:.4f}")
    profiler.disable()

    logging.info(f"Animation loop finished after {max_steps} steps.")

    output_path = run_params.get('output', DEFAULT_OUTPUT_FILE)
    if output_path:
        save_particle_arrays(sim.arrays(), output_path)

    # --- Performance Profile Output ---
    logging.info("--- Performance Profile ---")
    s = io.StringIO()
    # Sort by cumulative time spent in the function
    stats = pstats.Stats(profiler, stream=s).sort_stats('cumtime')
    stats.print_stats(20)
    logging.info(f"\n{s.getvalue()}")

    sim.dispose()
    logging.info("--- Galaxy Generator Shutting Down ---")


if __name__ == "__main__":
    main()
