"""Reading, merging and writing generic coverage reports."""