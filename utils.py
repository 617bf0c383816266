# utils.py
"""
Utility functions for the galaxy generator.

This module provides helpers used across the application that do not
belong to the distribution engine itself: logging setup, configuration
loading, decoding image files into pixel buffers and writing the generated
particle arrays to disk.
"""
import logging
import logging.handlers
import json
import os
from typing import Dict, Any

import numpy as np
import pygame

from constants import DEFAULT_LOG_FORMAT, DEFAULT_LOG_FILE
from image_distributor import PixelBuffer

# --- Data Contracts ---
#
# setup_logging(config: Dict[str, Any]) -> None:
#   - Inputs:
#     - config: A dictionary containing a "logging" key with optional "level",
#       "format", "log_file", "max_bytes" and "backup_count" sub-keys.
#   - Side Effects: Configures the root Python logger. Creates a log
#     directory if it doesn't exist. Sets up a console handler and a
#     rotating file handler.
#
# load_pixel_buffer(path: str) -> PixelBuffer:
#   - Outputs: the decoded image as row-major RGBA bytes.
#   - Raises FileNotFoundError or pygame.error if the file cannot be decoded.
#
# save_particle_arrays(arrays: Dict[str, Dict[str, np.ndarray]], path: str) -> None:
#   - Side Effects: writes one compressed .npz with keys "<set>/<attribute>".


def setup_logging(config: Dict[str, Any]) -> None:
    """
    Configures the logging system from a configuration dictionary.

    Sets up logging to both the console and a rotating file.
    """
    log_config = config.get('logging', {})
    log_level = log_config.get('level', 'INFO').upper()
    log_format = log_config.get('format', DEFAULT_LOG_FORMAT)
    log_file_path = log_config.get('log_file', DEFAULT_LOG_FILE)

    log_dir = os.path.dirname(log_file_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    logger = logging.getLogger()
    logger.setLevel(log_level)

    # Clear existing handlers to avoid duplication
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(log_format)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    file_handler = logging.handlers.RotatingFileHandler(
        log_file_path,
        maxBytes=log_config.get('max_bytes', 1024*1024),
        backupCount=log_config.get('backup_count', 5),
    )
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    # The JIT compiler is very chatty at DEBUG.
    logging.getLogger('numba').setLevel(logging.WARNING)

    logging.info("Logging system initialized.")
    logging.debug(f"Log level set to {log_level}.")
    logging.debug(f"Log file path: {log_file_path}")


def load_config(path: str) -> Dict[str, Any]:
    """Loads a JSON configuration file."""
    logging.info(f"Loading configuration from {path}...")
    try:
        with open(path, 'r') as f:
            config = json.load(f)
        logging.info("Configuration loaded successfully.")
        return config
    except FileNotFoundError:
        logging.error(f"Configuration file not found at {path}.")
        raise
    except json.JSONDecodeError:
        logging.error(f"Error decoding JSON from {path}.")
        raise


def load_pixel_buffer(path: str) -> PixelBuffer:
    """Decodes an image file (PNG, JPEG, ...) into an RGBA pixel buffer."""
    if not os.path.exists(path):
        logging.error(f"Image file not found at {path}.")
        raise FileNotFoundError(path)
    try:
        surface = pygame.image.load(path)
    except pygame.error as e:
        logging.error(f"Could not decode image {path}: {e}")
        raise
    width, height = surface.get_size()
    data = pygame.image.tobytes(surface, 'RGBA')
    logging.info(f"Loaded image {path} ({width}x{height}).")
    return PixelBuffer(width, height, data)


def save_particle_arrays(arrays: Dict[str, Dict[str, np.ndarray]], path: str) -> None:
    """Writes every set's attribute arrays into one compressed .npz archive."""
    out_dir = os.path.dirname(path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    flat = {
        f"{set_name}/{attribute}": values
        for set_name, attributes in arrays.items()
        for attribute, values in attributes.items()
    }
    np.savez_compressed(path, **flat)
    logging.info(f"Saved {len(arrays)} particle set(s) to {path}.")
