"""Service configuration loaded from the environment."""