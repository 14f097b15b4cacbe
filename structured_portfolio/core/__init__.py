"""Cross-cutting helpers: arithmetic, errors, logging and telemetry."""
