"""Scanner, lexer and parser for protobuf service blocks and their HTTP options."""