"""SQLite client and statements, row models and migration runner."""