"""ec2-metrics HTTP server entry point."""

import logging

from ec2metrics.config import load_config

logger = logging.getLogger("ec2metrics")


def main():
    """Run the API under uvicorn."""
    import uvicorn
    from ec2metrics.api import create_api
    from ec2metrics.core.services import create_services

    config = load_config()
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    svc = create_services(config=config)
    app = create_api(svc)

    logger.info("Starting ec2-metrics (HTTP on %s:%d, region %s)", config.http_host, config.http_port, config.aws.region)
    uvicorn.run(app, host=config.http_host, port=config.http_port)


if __name__ == "__main__":
    main()
