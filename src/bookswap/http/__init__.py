"""HTTP primitives: request, response, headers, query string."""
