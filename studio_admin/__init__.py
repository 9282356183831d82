"""Flask admin API for the tattoo studio: resources, media, settings and dashboards."""
