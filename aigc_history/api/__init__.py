"""HTTP layer: request and response shapes, errors, handlers and routes."""