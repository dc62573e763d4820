"""
Utilities for the CPU Scheduling & Deadlock Simulator.
Contains configuration, logging and the scenario loader.
"""
