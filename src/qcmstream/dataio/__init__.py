"""Data input/output helpers.

- :mod:`csv_writer` exports store snapshots to CSV.
- :mod:`recording` appends accepted samples to a CSV file as they arrive.
"""
