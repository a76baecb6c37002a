# Empty file to make app a package
