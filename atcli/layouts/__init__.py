"""Screen layouts and the manager that switches between them."""