"""
Product Editor Application
--------------------------
Main entry point for the Product Editor application.
Handles initialization, configuration, and application lifecycle.
"""

import tkinter as tk
from tkinter import messagebox
import logging
import logging.handlers
import json
import sys
import os
from copy import deepcopy
from typing import Optional, Dict, Any, Mapping
from pathlib import Path
import argparse
from contextlib import contextmanager
import threading
import signal
import traceback

from .api_client import (
    ApiClient,
    ApiConfig,
    ApiError,
    DEFAULT_BASE_URL,
    bearer_token_interceptor,
)
from .catalog import CatalogApi
from .form_state import ProductFormState, StandardChangePolicy
from .schema import ProductSubmission
from .tasks import TaskRunner
from .ui import UIConfig, build_window, create_task_runner

ENV_MODE = "PRODUCT_EDITOR_ENV"
ENV_API_BASE_URL = "PRODUCT_EDITOR_API_BASE_URL"
ENV_API_TOKEN = "PRODUCT_EDITOR_API_TOKEN"


class ApplicationError(Exception):
    """Base exception for application-level errors."""
    pass


class ConfigurationError(ApplicationError):
    """Raised when there's an error in configuration."""
    pass


class ProductEditor:
    """Main application class managing lifecycle and dependencies."""

    # Default configuration
    DEFAULT_CONFIG = {
        "log_dir": "~/product_editor_logs",
        "log_level": "INFO",
        "max_log_size": 5_242_880,  # 5MB
        "backup_count": 3,
        "standard_change_policy": "clear",
        "api": {
            "base_url": DEFAULT_BASE_URL,
            "timeout": None,
            "token": "",
            "submit_path": "",
        },
        "ui": {
            "font_size": 10,
            "window_size": [1200, 800],
            "locale": "en"
        },
    }

    def __init__(self):
        """Initialize the application."""
        self.exit_event = threading.Event()
        self.config: Dict[str, Any] = {}
        self.logger: Optional[logging.Logger] = None
        self.root: Optional[tk.Tk] = None
        self.runner: Optional[TaskRunner] = None
        self.client: Optional[ApiClient] = None

    def _setup_signal_handlers(self) -> None:
        """Set up handlers for system signals."""
        for sig in (signal.SIGTERM, signal.SIGINT):
            signal.signal(sig, self._handle_shutdown_signal)

    def _handle_shutdown_signal(self, signum: int, frame) -> None:
        """Handle shutdown signals gracefully."""
        if self.logger:
            self.logger.info("Received signal %s, initiating shutdown...", signum)
        self.exit_event.set()

    def initialize(self, config_path: Optional[str] = None,
                   overrides: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize the application with configuration.

        Args:
            config_path: Optional path to configuration file
            overrides: Optional ``api`` settings taken from the command line

        Raises:
            ConfigurationError: If configuration is invalid
        """
        try:
            self.config = self.load_configuration(config_path, overrides=overrides)
            self._setup_logging()
            self.logger.info("Application initialization started")
        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Failed to initialize application: {e}") from e

    def load_configuration(
        self,
        config_path: Optional[str] = None,
        *,
        environ: Optional[Mapping[str, str]] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Load application configuration.

        Defaults are overlaid by the JSON file, then the environment, then
        command line overrides.

        Args:
            config_path: Optional path to configuration file
            environ: Environment mapping, defaults to ``os.environ``
            overrides: Optional ``api`` settings taken from the command line

        Returns:
            Dict containing configuration
        """
        config = deepcopy(self.DEFAULT_CONFIG)
        environ = os.environ if environ is None else environ

        if config_path:
            try:
                with open(config_path, 'r', encoding='utf-8') as f:
                    user_config = json.load(f)
            except Exception as e:
                raise ConfigurationError(
                    f"Failed to load configuration from {config_path}: {e}") from e
            if not isinstance(user_config, dict):
                raise ConfigurationError(
                    f"Configuration in {config_path} must be a JSON object")
            for key, value in user_config.items():
                if key in ("api", "ui") and isinstance(value, dict):
                    config[key].update(value)
                else:
                    config[key] = value

        if environ.get(ENV_API_BASE_URL):
            config['api']['base_url'] = environ[ENV_API_BASE_URL]
        if environ.get(ENV_API_TOKEN):
            config['api']['token'] = environ[ENV_API_TOKEN]
        for key, value in (overrides or {}).items():
            if value is not None:
                config['api'][key] = value

        self._validate_configuration(config)

        # Expand paths
        config['log_dir'] = os.path.expanduser(config['log_dir'])

        return config

    def _validate_configuration(self, config: Dict[str, Any]) -> None:
        """Reject settings the application cannot start with."""
        base_url = str(config['api'].get('base_url') or "").strip()
        if not base_url.startswith(("http://", "https://")):
            raise ConfigurationError(
                f"api.base_url must be an http(s) URL, got {base_url!r}")
        timeout = config['api'].get('timeout')
        if timeout is not None and (not isinstance(timeout, (int, float)) or timeout <= 0):
            raise ConfigurationError("api.timeout must be a positive number of seconds")
        if not hasattr(logging, str(config['log_level']).upper()):
            raise ConfigurationError(f"Unknown log level {config['log_level']!r}")
        try:
            StandardChangePolicy.parse(config['standard_change_policy'])
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

    def _setup_logging(self) -> None:
        """Configure application logging."""
        self.logger = logging.getLogger('product_editor')
        self.logger.setLevel(getattr(logging, str(self.config['log_level']).upper()))

        # Replace handlers from an earlier initialize()
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()

        # Create log directory
        log_dir = Path(self.config['log_dir'])
        log_dir.mkdir(parents=True, exist_ok=True)

        # File handler with rotation
        log_file = log_dir / 'product_editor.log'
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=self.config['max_log_size'],
            backupCount=self.config['backup_count'],
            encoding='utf-8',
        )
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
        self.logger.addHandler(file_handler)

        # Console handler for development
        if self._is_development_mode():
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(logging.Formatter(
                '%(levelname)s: %(message)s'
            ))
            self.logger.addHandler(console_handler)

    def _is_development_mode(self) -> bool:
        """Check if application is running in development mode."""
        return os.environ.get(ENV_MODE) == 'development'

    @contextmanager
    def error_handler(self):
        """Context manager for handling application errors."""
        try:
            yield
        except Exception as e:
            if self.logger:
                self.logger.error("Unhandled error: %s", e)
                self.logger.debug(traceback.format_exc())
            message = (f"An unexpected error occurred: {e}\n\n"
                       "Please check the log file for details.")
            if self.root is not None:
                messagebox.showerror("Error", message)
            else:
                print(f"Error: {e}", file=sys.stderr)

    def create_api_config(self) -> ApiConfig:
        """Create the API client configuration."""
        api = self.config['api']
        return ApiConfig(base_url=api['base_url'], timeout=api.get('timeout'))

    def create_client(self) -> ApiClient:
        """Create the API client, attaching a bearer token when configured."""
        client = ApiClient(self.create_api_config())
        token = self.config['api'].get('token')
        if token:
            client.add_request_interceptor(bearer_token_interceptor(token))
        return client

    def _create_ui_config(self) -> UIConfig:
        """Create UI configuration."""
        ui_config = self.config['ui']
        return UIConfig(
            font_size=ui_config['font_size'],
            window_size=tuple(ui_config['window_size']),
            locale=ui_config['locale']
        )

    def handle_submission(self, submission: ProductSubmission) -> None:
        """Log the validated product and send it on when a submit path is set."""
        payload = submission.to_payload()
        self.logger.info("Validated product %s: %s",
                         payload.get("productSKU"), json.dumps(payload, ensure_ascii=False))
        submit_path = (self.config['api'].get('submit_path') or "").strip()
        if not submit_path:
            if self.root is not None:
                messagebox.showinfo("Product", "Product validated.")
            return
        self.runner.submit(
            lambda: self.client.post(submit_path, payload),
            lambda _result: self._submission_sent(payload),
            self._submission_failed,
        )

    def _submission_sent(self, payload: Dict[str, Any]) -> None:
        self.logger.info("Product %s submitted", payload.get("productSKU"))
        if self.root is not None:
            messagebox.showinfo("Product", "Product saved.")

    def _submission_failed(self, exc: Exception) -> None:
        self.logger.error("Product submission failed: %s", exc)
        if self.root is not None:
            detail = str(exc) if isinstance(exc, ApiError) else repr(exc)
            messagebox.showerror("Error", f"Could not save the product: {detail}")

    def run(self) -> None:
        """Run the application using Tkinter's main loop."""
        with self.error_handler():
            self.logger.info("Starting application")
            self._setup_signal_handlers()

            # Initialize Tk
            self.root = tk.Tk()
            self.root.protocol("WM_DELETE_WINDOW", self._on_window_close)
            ui_config = self._create_ui_config()
            self.root.option_add("*Font", ("TkDefaultFont", ui_config.font_size))

            # Set up components
            self.runner = create_task_runner(self.root)
            self.client = self.create_client()
            form = ProductFormState(
                CatalogApi(self.client),
                self.runner,
                standard_policy=self.config['standard_change_policy'],
                on_submit=self.handle_submission,
            )
            build_window(self.root, form)
            form.load_categories()

            # Configure window using ui_config
            self.root.title("Product Editor")
            self.root.geometry(
                f"{ui_config.window_size[0]}x{ui_config.window_size[1]}")

            # Schedule periodic check for exit_event
            self._check_exit(self.root)

            # Start Tkinter main loop
            self.root.mainloop()

            self._cleanup()

    def _check_exit(self, root: tk.Tk) -> None:
        """Periodically check if an exit event has been triggered and close the app."""
        if self.exit_event.is_set():
            self.logger.info("Exit event detected, closing the application.")
            root.quit()
        else:
            root.after(100, lambda: self._check_exit(root))

    def _on_window_close(self) -> None:
        """Handle window close event."""
        self.logger.info("Application shutdown initiated by user")
        self.exit_event.set()

    def _cleanup(self) -> None:
        """Clean up resources before exit."""
        self.logger.info("Cleaning up resources")
        try:
            if self.root is not None:
                self.root.destroy()
        except Exception as e:
            self.logger.error("Error during cleanup: %s", e)
        finally:
            self.root = None
            self.logger.info("Application shutdown complete")
            logging.shutdown()


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Product Editor Application")
    parser.add_argument(
        "--config",
        help="Path to configuration file",
        default=None
    )
    parser.add_argument(
        "--api-base",
        help="Base URL of the catalogue API",
        default=None
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode"
    )
    return parser.parse_args(argv)


def main(argv=None):
    """Application entry point."""
    args = parse_arguments(argv)

    if args.debug:
        os.environ[ENV_MODE] = 'development'

    app = ProductEditor()

    try:
        app.initialize(args.config, overrides={"base_url": args.api_base})
        app.run()
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
